"""
Transaction session: one connection, one identity/signer pair and one
channel/contract target, used for exactly one submit or evaluate.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from . import codec
from .contracts.interfaces import (
    Deadlines,
    GatewayMethod,
    Identity,
    InvocationMode,
    LedgerConnection,
    OperationInvocation,
)
from .errors import CommitFailureError, ConnectionClosedError
from .signer import Signer

logger = logging.getLogger(__name__)


class TransactionSession:
    def __init__(
        self,
        connection: LedgerConnection,
        identity: Identity,
        signer: Signer,
        channel_name: str,
        contract_name: str,
        deadlines: Optional[Deadlines] = None,
    ) -> None:
        self.connection = connection
        self.identity = identity
        self.signer = signer
        self.channel_name = channel_name
        self.contract_name = contract_name
        self.deadlines = deadlines or Deadlines()
        self._used = False

    @property
    def used(self) -> bool:
        return self._used

    def _claim(self, invocation: OperationInvocation) -> None:
        if self._used:
            raise RuntimeError(f"Transaction session already used; cannot run {invocation.name}")
        self._used = True
        if self.connection.closed:
            raise ConnectionClosedError(f"Connection to {self.connection.target} is closed")

    async def _call(self, method: GatewayMethod, payload: bytes, transaction_id: str) -> dict:
        started = time.monotonic()
        raw = await self.connection.call(method, payload, self.deadlines.for_method(method))
        logger.debug(
            "%s for tx %s completed in %.3fs", method.value, transaction_id, time.monotonic() - started
        )
        return codec.decode_message(raw)

    async def submit(self, invocation: OperationInvocation) -> bytes:
        """
        Endorse, order and wait for commit. Returns the contract payload only
        once the ledger has recorded the transaction as valid.
        """
        if invocation.mode != InvocationMode.SUBMIT:
            raise ValueError(f"{invocation.name} is not a submit invocation")
        self._claim(invocation)

        proposal = codec.new_proposal(invocation, self.identity, self.channel_name, self.contract_name)
        tx_id = proposal.transaction_id
        logger.info("Submitting %s on %s/%s (tx %s)", invocation.name, self.channel_name, self.contract_name, tx_id)

        endorsed = await self._call(
            GatewayMethod.ENDORSE,
            codec.proposal_request(proposal, self.signer.sign(proposal.body)),
            tx_id,
        )
        payload = codec.proposal_result_payload(endorsed, invocation.name)
        prepared = codec.prepared_transaction(endorsed)

        await self._call(
            GatewayMethod.SUBMIT,
            codec.submit_request(tx_id, self.channel_name, prepared, self.signer.sign(prepared)),
            tx_id,
        )

        status_body = codec.commit_status_body(tx_id, self.channel_name, self.identity)
        status = await self._call(
            GatewayMethod.COMMIT_STATUS,
            codec.commit_status_request(status_body, self.signer.sign(status_body)),
            tx_id,
        )
        code = codec.commit_validation_code(status)
        if code != codec.VALID:
            raise CommitFailureError(
                f"Transaction {tx_id} failed to commit with status code {code}",
                transaction_id=tx_id,
                validation_code=code,
            )

        logger.info("Transaction %s committed (block %s)", tx_id, status.get("block_number"))
        return payload

    async def evaluate(self, invocation: OperationInvocation) -> bytes:
        if invocation.mode != InvocationMode.EVALUATE:
            raise ValueError(f"{invocation.name} is not an evaluate invocation")
        self._claim(invocation)

        proposal = codec.new_proposal(invocation, self.identity, self.channel_name, self.contract_name)
        logger.debug("Evaluating %s on %s/%s", invocation.name, self.channel_name, self.contract_name)
        response = await self._call(
            GatewayMethod.EVALUATE,
            codec.proposal_request(proposal, self.signer.sign(proposal.body)),
            proposal.transaction_id,
        )
        return codec.proposal_result_payload(response, invocation.name)
