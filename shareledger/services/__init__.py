"""Business logic: the ledger engine and its surrounding services."""
