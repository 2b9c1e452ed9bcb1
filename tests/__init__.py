"""
Test Suite for the Stock KPI Engine

Includes:
- Unit tests for calendar, series, anchor and return calculations
- Ingestion tests for row coercion and validation
- Pipeline and CLI tests against temp files
"""
