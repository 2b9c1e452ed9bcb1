"""
Data Ingestion Module

Reads raw price rows and validates them before they reach the engine:
- CSV and JSON price files (document-store exports included)
- Row normalization with malformed rows dropped and counted
"""

__version__ = "0.1.0"
