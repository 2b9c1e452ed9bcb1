"""
Analysis Engine Module

Computes trailing-return KPIs from daily price observations:
- Grouping and chronological ordering per entity
- Anchor resolution for 1Y, 3Y and 5Y targets
- Percentage returns with an 'N/A' marker for unusable anchors
"""

__version__ = "0.1.0"
