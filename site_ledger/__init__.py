"""
Site Ledger - employer labor costing and project expense ledger.

Tracks construction-site projects, their labor and material line items,
and derives break-even cost and margin against a quoted sale price.
"""

__version__ = "0.1.0"
