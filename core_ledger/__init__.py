"""
Core Ledger

A single-currency account ledger with effective-dated interest rules and
monthly statements. All monetary values use Decimal.
"""

__version__ = "1.0.0"
