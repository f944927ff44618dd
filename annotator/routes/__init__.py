"""
HTTP routes - thin adapters over the ledger and term index.
"""

from . import items, terms

__all__ = ["items", "terms"]
