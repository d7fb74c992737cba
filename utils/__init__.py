"""
Utility modules for the appraisal engine.
"""

from .config import Config

__all__ = ["Config"]
