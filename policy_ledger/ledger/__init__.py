"""
Ledger layer.

This package contains all code used to talk to the ledger peer:
- key material, identity and signer construction
- the shared transport connection (real gRPC or mock peer)
- transaction sessions and the submit/evaluate gateway API
- the typed insurance-policy client built on top of it

Key rule:
- REST handlers and scripts MUST NOT build connections or sessions themselves.
- They call TransactionGateway / PolicyLedgerClient, which own that logic once.

Switching implementations:
- Mock vs real peer selection happens in ONE place (policy_ledger/api/dependencies.py,
  driven by LEDGER_MODE).
"""

from .contracts.interfaces import (
    Deadlines,
    EndpointDescriptor,
    GatewayMethod,
    Identity,
    InvocationMode,
    KeyMaterial,
    LedgerConnection,
    OperationInvocation,
)
from .contracts.operations import INSURANCE_CATALOG, OperationCatalog
from .contracts.policy import PolicyRecord, PolicyStatus, matured_balance
from .errors import (
    ChaincodeRejectedError,
    ClassifiedFailure,
    CommitFailureError,
    ConnectionClosedError,
    ConnectionFailureError,
    FailureKind,
    InvalidArgumentsError,
    InvalidKeyMaterialError,
    IOFailureError,
    LedgerTimeoutError,
    MalformedResponseError,
    NotFoundError,
)
from .gateway import TransactionGateway
from .identity import Credentials, CredentialsProvider, StaticCredentialsProvider, make_identity
from .keys import load_key_material, read_key_material
from .policy_client import PolicyLedgerClient
from .session import TransactionSession
from .signer import Signer, make_signer

__all__ = [
    # contracts
    "Deadlines", "EndpointDescriptor", "GatewayMethod", "Identity", "InvocationMode",
    "KeyMaterial", "LedgerConnection", "OperationInvocation",
    "INSURANCE_CATALOG", "OperationCatalog",
    "PolicyRecord", "PolicyStatus", "matured_balance",
    # errors
    "ChaincodeRejectedError", "ClassifiedFailure", "CommitFailureError", "ConnectionClosedError",
    "ConnectionFailureError", "FailureKind", "InvalidArgumentsError", "InvalidKeyMaterialError",
    "IOFailureError", "LedgerTimeoutError", "MalformedResponseError", "NotFoundError",
    # gateway
    "Credentials", "CredentialsProvider", "StaticCredentialsProvider", "make_identity",
    "load_key_material", "read_key_material",
    "PolicyLedgerClient", "Signer", "TransactionGateway", "TransactionSession", "make_signer",
]
