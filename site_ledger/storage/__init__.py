"""
Persistence for Site Ledger.

Stores the whole ledger as one snapshot; there is no incremental write path.
"""
