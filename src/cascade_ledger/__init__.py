"""Cascade Ledger: point-in-time ledger reconstruction and reconciliation."""

__version__ = "0.1.0"
