"""
Failure taxonomy for the ledger gateway.

Every failure raised by this package is a ClassifiedFailure subclass so callers
(the REST layer, scripts, tests) can branch on `kind` instead of parsing text.
Low-level causes (OSError, grpc errors, key parsing errors) are chained with
`raise ... from exc`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class FailureKind(str, Enum):
    NOT_FOUND = "NotFound"
    IO_FAILURE = "IOFailure"
    INVALID_KEY_MATERIAL = "InvalidKeyMaterial"
    CONNECTION_FAILURE = "ConnectionFailure"
    CONNECTION_CLOSED = "ConnectionClosed"
    TIMEOUT = "Timeout"
    CHAINCODE_REJECTED = "ChaincodeRejected"
    MALFORMED_RESPONSE = "MalformedResponse"
    INVALID_ARGUMENTS = "InvalidArguments"
    COMMIT_FAILURE = "CommitFailure"


class ClassifiedFailure(Exception):
    kind: FailureKind = FailureKind.IO_FAILURE

    def __init__(self, message: str, *, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class NotFoundError(ClassifiedFailure):
    kind = FailureKind.NOT_FOUND


class IOFailureError(ClassifiedFailure):
    kind = FailureKind.IO_FAILURE


class InvalidKeyMaterialError(ClassifiedFailure):
    kind = FailureKind.INVALID_KEY_MATERIAL


class ConnectionFailureError(ClassifiedFailure):
    kind = FailureKind.CONNECTION_FAILURE


class ConnectionClosedError(ClassifiedFailure):
    kind = FailureKind.CONNECTION_CLOSED


class LedgerTimeoutError(ClassifiedFailure):
    """A phase deadline elapsed. `phase` names the RPC that ran out of time."""

    kind = FailureKind.TIMEOUT

    def __init__(self, message: str, *, phase: Optional[str] = None, detail: Optional[str] = None) -> None:
        super().__init__(message, detail=detail)
        self.phase = phase


class ChaincodeRejectedError(ClassifiedFailure):
    """The remote contract refused the operation; `message` is the peer's text verbatim."""

    kind = FailureKind.CHAINCODE_REJECTED


class MalformedResponseError(ClassifiedFailure):
    kind = FailureKind.MALFORMED_RESPONSE


class InvalidArgumentsError(ClassifiedFailure):
    kind = FailureKind.INVALID_ARGUMENTS


class CommitFailureError(ClassifiedFailure):
    """The transaction was ordered but the ledger recorded it as invalid."""

    kind = FailureKind.COMMIT_FAILURE

    def __init__(self, message: str, *, transaction_id: str, validation_code: str) -> None:
        super().__init__(message, detail=validation_code)
        self.transaction_id = transaction_id
        self.validation_code = validation_code
