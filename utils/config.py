"""
Configuration management.
"""

import os
from dataclasses import dataclass, field


def _csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    allowed_origins: tuple[str, ...] = field(
        default_factory=lambda: _csv(os.getenv("ALLOWED_ORIGINS", ""))
    )

    # Data
    data_dir: str = field(default_factory=lambda: os.getenv("DATA_DIR", "./data"))
    reports_file: str = field(default_factory=lambda: os.getenv("REPORTS_FILE", ""))

    # Quality gate
    required_legal_document_types: tuple[str, ...] = field(
        default_factory=lambda: _csv(os.getenv("REQUIRED_LEGAL_DOCUMENT_TYPES", "SHM,IMB"))
    )
    required_attachments: tuple[str, ...] = field(
        default_factory=lambda: _csv(
            os.getenv("REQUIRED_ATTACHMENTS", "photo_front,photo_right,photo_left,legal_doc")
        )
    )
    min_comparables: int = field(
        default_factory=lambda: int(os.getenv("MIN_COMPARABLES", "2"))
    )
    comparable_weight_target: float = field(
        default_factory=lambda: float(os.getenv("COMPARABLE_WEIGHT_TARGET", "100"))
    )
    appraisal_sla_days: int = field(
        default_factory=lambda: int(os.getenv("APPRAISAL_SLA_DAYS", "14"))
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    @property
    def reports_path(self) -> str:
        """JSON file holding stored reports."""
        return self.reports_file or os.path.join(self.data_dir, "reports.json")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "allowed_origins": list(self.allowed_origins),
            "data_dir": self.data_dir,
            "reports_file": self.reports_path,
            "required_legal_document_types": list(self.required_legal_document_types),
            "required_attachments": list(self.required_attachments),
            "min_comparables": self.min_comparables,
            "comparable_weight_target": self.comparable_weight_target,
            "appraisal_sla_days": self.appraisal_sla_days,
        }
