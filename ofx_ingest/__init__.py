"""
OFX statement ingestion: parse, repair, classify and de-duplicate bank
statement exports into ledger-ready transactions.
"""

__version__ = "1.0.0"
