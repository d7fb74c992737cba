"""
Web interface for the collateral appraisal engine.
"""
