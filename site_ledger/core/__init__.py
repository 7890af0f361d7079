"""
Core modules for Site Ledger.

This package contains the costing engine: wage conversion, line item
derivation, project and portfolio aggregation, and the immutable ledger.
"""
