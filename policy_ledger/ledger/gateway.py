"""
Transaction Gateway API.

The public surface for contract calls. One TransactionGateway is built at
startup around the shared connection and the immutable configuration; every
submit/evaluate gets its own short-lived TransactionSession.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Protocol

from . import codec
from .contracts.interfaces import Deadlines, InvocationMode, LedgerConnection, OperationInvocation
from .contracts.operations import INSURANCE_CATALOG, OperationCatalog
from .errors import ClassifiedFailure, ConnectionClosedError
from .identity import Credentials
from .session import TransactionSession

logger = logging.getLogger(__name__)


class CredentialsSource(Protocol):
    def load(self) -> Credentials: ...


class TransactionGateway:
    def __init__(
        self,
        connection: LedgerConnection,
        credentials: CredentialsSource,
        channel_name: str,
        contract_name: str,
        deadlines: Optional[Deadlines] = None,
        catalog: Optional[OperationCatalog] = INSURANCE_CATALOG,
    ) -> None:
        self.connection = connection
        self.credentials = credentials
        self.channel_name = channel_name
        self.contract_name = contract_name
        self.deadlines = deadlines or Deadlines()
        self.catalog = catalog

    @classmethod
    def from_config(cls, connection: LedgerConnection, config, credentials: CredentialsSource, **kwargs):
        return cls(
            connection=connection,
            credentials=credentials,
            channel_name=config.channel_name,
            contract_name=config.contract_name,
            deadlines=config.deadlines.to_deadlines(),
            **kwargs,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[TransactionSession]:
        if self.connection.closed:
            raise ConnectionClosedError(f"Connection to {self.connection.target} is closed")
        credentials = self.credentials.load()
        session = TransactionSession(
            connection=self.connection,
            identity=credentials.identity,
            signer=credentials.signer,
            channel_name=self.channel_name,
            contract_name=self.contract_name,
            deadlines=self.deadlines,
        )
        yield session

    def invocation(self, name: str, args: tuple, mode: InvocationMode) -> OperationInvocation:
        if self.catalog is not None:
            return self.catalog.encode(name, args, mode)
        return OperationInvocation(name=name, args=tuple(str(a) for a in args), mode=mode)

    async def submit(self, name: str, *args: Any) -> Any:
        """Run a state-changing operation; returns only after the ledger commits it."""
        invocation = self.invocation(name, args, InvocationMode.SUBMIT)
        try:
            async with self.session() as session:
                payload = await session.submit(invocation)
            result = codec.decode_payload(payload)
        except ClassifiedFailure as exc:
            logger.warning("Submit %s failed [%s]: %s", name, exc.kind.value, exc.message)
            raise
        return result

    async def evaluate(self, name: str, *args: Any) -> Any:
        """Run a read-only operation on a single peer; no ordering guarantee."""
        invocation = self.invocation(name, args, InvocationMode.EVALUATE)
        try:
            async with self.session() as session:
                payload = await session.evaluate(invocation)
            result = codec.decode_payload(payload)
        except ClassifiedFailure as exc:
            logger.warning("Evaluate %s failed [%s]: %s", name, exc.kind.value, exc.message)
            raise
        return result
