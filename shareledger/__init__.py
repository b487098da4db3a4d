"""Fractional real-estate share ledger service."""
