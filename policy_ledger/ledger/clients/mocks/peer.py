"""
Mock ledger peer.

Purpose:
- Stands in for the gRPC gateway peer during development and testing
- Does NOT open sockets; it decodes the same wire messages the real peer gets
- Hosts the in-memory InsuranceContract and keeps committed state in memory

Behavior:
- Endorse simulates the contract against a copy of the state, recording the
  version of every key it reads and the keys it writes, and keeps that
  read/write set pending under the transaction id
- Submit applies the write set (MVCC_READ_CONFLICT if a key it read was
  committed by another transaction in between)
- CommitStatus reports the recorded validation code once, then forgets it
- Evaluate runs the contract against a throwaway copy

Pending endorsements and unread commit codes are capped at `max_tracked`
entries; the oldest are dropped first.

Knobs for tests: per-method `delays` (to trip deadlines), `commit_override`
(to force an invalid validation code) and `response_overrides` (raw bytes to
return instead of a well-formed response).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from ... import codec
from ...contracts.interfaces import GatewayMethod, LedgerConnection
from ...errors import ChaincodeRejectedError, ConnectionClosedError, LedgerTimeoutError
from .insurance_contract import ContractError, InsuranceContract

logger = logging.getLogger(__name__)

DEFAULT_MAX_TRACKED = 1024


class _ReadTrackingState(dict):
    """Working copy of the world state that remembers every key looked up."""

    def __init__(self, state: Dict[str, str]) -> None:
        super().__init__(state)
        self.reads: set = set()

    def __getitem__(self, key: str) -> str:
        self.reads.add(key)
        return super().__getitem__(key)

    def __contains__(self, key: object) -> bool:
        self.reads.add(key)
        return super().__contains__(key)

    def get(self, key: str, default: Any = None) -> Any:
        self.reads.add(key)
        return super().get(key, default)

    def pop(self, key: str, *default: Any) -> Any:
        self.reads.add(key)
        return super().pop(key, *default)


@dataclass
class _PendingTransaction:
    read_versions: Dict[str, int]
    writes: Dict[str, Optional[str]]
    payload: bytes


def _remember(store: Dict[str, Any], key: str, value: Any, limit: int) -> None:
    store[key] = value
    while len(store) > limit:
        store.pop(next(iter(store)))


class MockLedgerPeer(LedgerConnection):
    def __init__(
        self,
        contract: Optional[InsuranceContract] = None,
        channel_name: str = "mychannel",
        contract_name: str = "insurance",
        target: str = "mock-peer:7051",
        verify_signatures: bool = True,
        delays: Optional[Dict[GatewayMethod, float]] = None,
        commit_override: Optional[str] = None,
        response_overrides: Optional[Dict[GatewayMethod, bytes]] = None,
        max_tracked: int = DEFAULT_MAX_TRACKED,
    ) -> None:
        self.contract = contract or InsuranceContract()
        self.channel_name = channel_name
        self.contract_name = contract_name
        self._target = target
        self.verify_signatures = verify_signatures
        self.delays = dict(delays or {})
        self.commit_override = commit_override
        self.response_overrides = dict(response_overrides or {})
        self.max_tracked = max_tracked

        self.state: Dict[str, str] = {}
        self.versions: Dict[str, int] = {}
        self.block_number = 0
        self.calls: List[GatewayMethod] = []
        self._pending: Dict[str, _PendingTransaction] = {}
        self._commit_codes: Dict[str, str] = {}
        self._closed = False

    @property
    def target(self) -> str:
        return self._target

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def tracked_transactions(self) -> int:
        return len(self._pending) + len(self._commit_codes)

    async def close(self) -> None:
        self._closed = True

    async def call(self, method: GatewayMethod, payload: bytes, timeout: float) -> bytes:
        if self._closed:
            raise ConnectionClosedError(f"Connection to {self.target} is closed")
        self.calls.append(method)
        try:
            return await asyncio.wait_for(self._dispatch(method, payload), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise LedgerTimeoutError(
                f"{method.value} exceeded its {timeout}s deadline", phase=method.value
            ) from exc

    async def _dispatch(self, method: GatewayMethod, payload: bytes) -> bytes:
        delay = self.delays.get(method)
        if delay:
            await asyncio.sleep(delay)
        if method in self.response_overrides:
            return self.response_overrides[method]

        request = codec.decode_message(payload)
        if method == GatewayMethod.ENDORSE:
            return self._endorse(request)
        if method == GatewayMethod.SUBMIT:
            return self._submit(request)
        if method == GatewayMethod.COMMIT_STATUS:
            return self._commit_status(request)
        return self._evaluate(request)

    # -- request handling --

    def _open_envelope(self, envelope: Dict, certificate: Optional[bytes] = None) -> bytes:
        body = codec.unb64(envelope.get("payload"), "payload")
        signature = codec.unb64(envelope.get("signature"), "signature")
        if self.verify_signatures:
            if certificate is None:
                creator = codec.decode_message(body).get("creator") or {}
                certificate = codec.unb64(creator.get("certificate"), "creator.certificate")
            _verify(certificate, signature, body)
        return body

    def _read_proposal(self, request: Dict) -> Dict:
        body = self._open_envelope(request.get("proposed_transaction") or {})
        proposal = codec.decode_message(body)
        if proposal.get("channel") != self.channel_name:
            raise ChaincodeRejectedError(f"channel '{proposal.get('channel')}' not found")
        if proposal.get("contract") != self.contract_name:
            raise ChaincodeRejectedError(f"chaincode '{proposal.get('contract')}' not found")
        return proposal

    def _run(self, proposal: Dict, state: Dict[str, str]) -> Dict:
        try:
            payload = self.contract.invoke(state, proposal["function"], list(proposal.get("args", [])))
        except ContractError as exc:
            return codec.result_message(500, message=str(exc))
        return codec.result_message(codec.STATUS_OK, payload)

    def _endorse(self, request: Dict) -> bytes:
        proposal = self._read_proposal(request)
        tx_id = proposal["transaction_id"]
        working = _ReadTrackingState(self.state)
        result = self._run(proposal, working)
        if result["status"] == codec.STATUS_OK:
            read_versions = {key: self.versions.get(key, 0) for key in working.reads}
            writes: Dict[str, Optional[str]] = {
                key: value for key, value in working.items() if self.state.get(key) != value
            }
            writes.update({key: None for key in self.state.keys() - working.keys()})
            _remember(
                self._pending,
                tx_id,
                _PendingTransaction(
                    read_versions=read_versions,
                    writes=writes,
                    payload=codec.unb64(result["payload"], "payload"),
                ),
                self.max_tracked,
            )
        prepared = codec.encode_message({"transaction_id": tx_id, "proposal": proposal, "result": result})
        return codec.encode_message({"result": result, "prepared_transaction": {"payload": codec.b64(prepared)}})

    def _submit(self, request: Dict) -> bytes:
        tx_id = request.get("transaction_id")
        pending = self._pending.get(tx_id)
        if pending is None:
            raise ChaincodeRejectedError(f"transaction {tx_id} was not endorsed by this peer")

        prepared = codec.decode_message(codec.unb64((request.get("prepared_transaction") or {}).get("payload"), "payload"))
        creator = prepared["proposal"]["creator"]
        self._open_envelope(request["prepared_transaction"], codec.unb64(creator["certificate"], "certificate"))

        del self._pending[tx_id]
        self.block_number += 1
        if self.commit_override:
            code = self.commit_override
        elif any(self.versions.get(key, 0) != seen for key, seen in pending.read_versions.items()):
            code = "MVCC_READ_CONFLICT"
        else:
            self._apply(pending.writes)
            code = codec.VALID
        _remember(self._commit_codes, tx_id, code, self.max_tracked)
        logger.debug("Mock peer ordered tx %s in block %d: %s", tx_id, self.block_number, code)
        return codec.encode_message({})

    def _apply(self, writes: Dict[str, Optional[str]]) -> None:
        for key, value in writes.items():
            if value is None:
                self.state.pop(key, None)
            else:
                self.state[key] = value
            self.versions[key] = self.versions.get(key, 0) + 1

    def _commit_status(self, request: Dict) -> bytes:
        body = codec.decode_message(codec.unb64(request.get("payload"), "payload"))
        certificate = codec.unb64(body["identity"]["certificate"], "identity.certificate")
        self._open_envelope(request, certificate)
        tx_id = body.get("transaction_id")
        code = self._commit_codes.pop(tx_id, None)
        if code is None:
            raise ChaincodeRejectedError(f"transaction {tx_id} not found")
        return codec.encode_message({"result": code, "block_number": self.block_number})

    def _evaluate(self, request: Dict) -> bytes:
        proposal = self._read_proposal(request)
        return codec.encode_message({"result": self._run(proposal, dict(self.state))})


def _verify(certificate: bytes, signature: bytes, body: bytes) -> None:
    try:
        public_key = x509.load_pem_x509_certificate(certificate).public_key()
    except ValueError as exc:
        raise ChaincodeRejectedError("access denied: creator certificate is not valid PEM") from exc
    try:
        if isinstance(public_key, ed25519.Ed25519PublicKey):
            public_key.verify(signature, body)
        elif isinstance(public_key, ec.EllipticCurvePublicKey):
            digest = hashes.SHA384() if public_key.curve.key_size > 256 else hashes.SHA256()
            public_key.verify(signature, body, ec.ECDSA(digest))
        else:
            raise ChaincodeRejectedError("access denied: unsupported creator key type")
    except InvalidSignature as exc:
        raise ChaincodeRejectedError("access denied: creator signature does not verify") from exc
