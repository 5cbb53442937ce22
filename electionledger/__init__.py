"""Election management contract for a replicated, versioned key-value ledger."""

__version__ = "0.1.0"
