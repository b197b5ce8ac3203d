"""
Wire codec for the gateway service.

Gateway messages are UTF-8 JSON documents carried as raw bytes over generic
unary gRPC methods. Binary fields (proposal bytes, signatures, certificates,
contract payloads) are base64 encoded. This module is the only place that
knows the envelope field names; the real connection and the mock peer both
go through it.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .contracts.interfaces import Identity, OperationInvocation
from .errors import ChaincodeRejectedError, MalformedResponseError

NONCE_SIZE = 24
STATUS_OK = 200
STATUS_ERROR_THRESHOLD = 400
VALID = "VALID"


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def unb64(value: Any, field_name: str) -> bytes:
    if not isinstance(value, str):
        raise MalformedResponseError(f"Field '{field_name}' must be a base64 string")
    try:
        return base64.b64decode(value.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise MalformedResponseError(f"Field '{field_name}' is not valid base64") from exc


def encode_message(message: Dict[str, Any]) -> bytes:
    return json.dumps(message, separators=(",", ":"), sort_keys=True).encode("utf-8")


def decode_message(data: bytes) -> Dict[str, Any]:
    try:
        message = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedResponseError(f"Gateway message is not valid JSON: {exc}") from exc
    if not isinstance(message, dict):
        raise MalformedResponseError("Gateway message must be a JSON object")
    return message


def decode_payload(payload: bytes) -> Any:
    """Decode a contract result: UTF-8 text holding a JSON value. Empty means no result."""
    if not payload:
        return None
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedResponseError(f"Contract result is not UTF-8: {exc}") from exc
    try:
        return json.loads(text)
    except ValueError as exc:
        raise MalformedResponseError(f"Contract result is not valid JSON: {text[:200]!r}") from exc


def serialize_identity(identity: Identity) -> Dict[str, str]:
    return {"msp_id": identity.organization_id, "certificate": b64(identity.certificate)}


# ---------------------------------------------------------------------------
# Proposals
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Proposal:
    transaction_id: str
    channel: str
    body: bytes                      # exact bytes that get signed


def new_proposal(
    invocation: OperationInvocation,
    identity: Identity,
    channel: str,
    contract: str,
    nonce: Optional[bytes] = None,
) -> Proposal:
    nonce = nonce if nonce is not None else os.urandom(NONCE_SIZE)
    creator = serialize_identity(identity)
    transaction_id = hashlib.sha256(nonce + encode_message(creator)).hexdigest()
    body = encode_message(
        {
            "channel": channel,
            "contract": contract,
            "function": invocation.name,
            "args": list(invocation.args),
            "transaction_id": transaction_id,
            "nonce": b64(nonce),
            "creator": creator,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )
    return Proposal(transaction_id=transaction_id, channel=channel, body=body)


def signed_envelope(body: bytes, signature: bytes) -> Dict[str, str]:
    return {"payload": b64(body), "signature": b64(signature)}


def proposal_request(proposal: Proposal, signature: bytes) -> bytes:
    return encode_message(
        {
            "transaction_id": proposal.transaction_id,
            "channel": proposal.channel,
            "proposed_transaction": signed_envelope(proposal.body, signature),
        }
    )


def submit_request(transaction_id: str, channel: str, prepared: bytes, signature: bytes) -> bytes:
    return encode_message(
        {
            "transaction_id": transaction_id,
            "channel": channel,
            "prepared_transaction": signed_envelope(prepared, signature),
        }
    )


def commit_status_body(transaction_id: str, channel: str, identity: Identity) -> bytes:
    return encode_message(
        {"transaction_id": transaction_id, "channel": channel, "identity": serialize_identity(identity)}
    )


def commit_status_request(body: bytes, signature: bytes) -> bytes:
    return encode_message(signed_envelope(body, signature))


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

def proposal_result_payload(message: Dict[str, Any], operation: str) -> bytes:
    """Return the contract payload from an Endorse/Evaluate response, or raise on rejection."""
    result = message.get("result")
    if not isinstance(result, dict):
        raise MalformedResponseError(f"{operation}: response carries no proposal result")
    status = result.get("status")
    if not isinstance(status, int):
        raise MalformedResponseError(f"{operation}: proposal result has no integer status")
    if status >= STATUS_ERROR_THRESHOLD:
        text = str(result.get("message") or f"status {status}")
        raise ChaincodeRejectedError(text, detail=f"{operation} returned status {status}")
    return unb64(result.get("payload", ""), "result.payload")


def prepared_transaction(message: Dict[str, Any]) -> bytes:
    prepared = message.get("prepared_transaction")
    if not isinstance(prepared, dict):
        raise MalformedResponseError("Endorse response carries no prepared transaction")
    return unb64(prepared.get("payload"), "prepared_transaction.payload")


def commit_validation_code(message: Dict[str, Any]) -> str:
    code = message.get("result")
    if not isinstance(code, str) or not code:
        raise MalformedResponseError("CommitStatus response carries no validation code")
    return code


def result_message(status: int, payload: bytes = b"", message: str = "") -> Dict[str, Any]:
    return {"status": status, "message": message, "payload": b64(payload)}
