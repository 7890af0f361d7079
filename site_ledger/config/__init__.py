"""
Configuration for Site Ledger.
"""
