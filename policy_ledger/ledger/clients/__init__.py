"""
Ledger peer connections.

- real_grpc/: the TLS gRPC channel used against a real peer
- mocks/: an in-memory peer hosting the insurance contract, for development
  and tests

Both implement contracts.interfaces.LedgerConnection.
"""
