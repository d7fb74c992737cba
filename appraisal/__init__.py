"""
Collateral Appraisal Engine

Valuation, comparable analysis and quality validation for collateral
appraisal reports.
"""

__version__ = "0.1.0"
