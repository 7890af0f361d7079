"""
Command-line interface for Site Ledger.
"""
