"""REST adapter for the policy ledger gateway."""
