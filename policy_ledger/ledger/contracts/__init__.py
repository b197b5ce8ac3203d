"""
Contracts (data models).

This folder defines the shapes exchanged with the ledger:
- identity, endpoint and deadline descriptors (interfaces.py)
- the operation catalog and typed argument encoder (operations.py)
- policy records and the maturity calculation (policy.py)

Both the mock peer and the real gRPC connection are driven through these
contracts, so flows never pass ad-hoc dicts or untyped argument lists around.
"""
