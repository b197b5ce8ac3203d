"""
Real gRPC peer connection.

Must implement the same LedgerConnection interface as the mock peer.
"""

from .connection import GrpcLedgerConnection, connect, endpoint_from_address, read_tls_root_certificate

__all__ = ["GrpcLedgerConnection", "connect", "endpoint_from_address", "read_tls_root_certificate"]
