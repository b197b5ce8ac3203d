"""Policy ledger gateway: insurance-policy contract calls over a ledger peer connection."""

__version__ = "1.0.0"
