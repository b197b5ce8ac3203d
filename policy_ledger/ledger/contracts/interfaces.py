"""
Shared data models and the abstract peer connection.

Both the real gRPC connection (clients/real_grpc) and the mock peer
(clients/mocks) implement LedgerConnection, so sessions and the gateway never
need to know which one they are talking to.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class InvocationMode(str, Enum):
    SUBMIT = "SUBMIT"
    EVALUATE = "EVALUATE"


class GatewayMethod(str, Enum):
    ENDORSE = "Endorse"
    SUBMIT = "Submit"
    COMMIT_STATUS = "CommitStatus"
    EVALUATE = "Evaluate"


# ---------------------------------------------------------------------------
# Shared data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Identity:
    organization_id: str                 # MSP id, e.g. Org1MSP
    certificate: bytes                   # PEM bytes, passed to the peer as-is


@dataclass(frozen=True)
class KeyMaterial:
    private_key: bytes = field(repr=False)
    certificate: bytes


@dataclass(frozen=True)
class EndpointDescriptor:
    host: str
    port: int
    tls_root_certificate: bytes = field(repr=False)
    tls_server_name_override: str = ""

    @property
    def target(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class Deadlines:
    """Per-phase timeouts in seconds."""
    evaluate: float = 5.0
    endorse: float = 15.0
    submit: float = 5.0
    commit_status: float = 60.0

    def for_method(self, method: GatewayMethod) -> float:
        return {
            GatewayMethod.EVALUATE: self.evaluate,
            GatewayMethod.ENDORSE: self.endorse,
            GatewayMethod.SUBMIT: self.submit,
            GatewayMethod.COMMIT_STATUS: self.commit_status,
        }[method]


@dataclass(frozen=True)
class OperationInvocation:
    name: str
    args: Tuple[str, ...] = ()
    mode: InvocationMode = InvocationMode.EVALUATE


# ---------------------------------------------------------------------------
# Abstract peer connection
# ---------------------------------------------------------------------------

class LedgerConnection(ABC):
    """A long-lived channel to one ledger peer, shared by every session."""

    @property
    @abstractmethod
    def target(self) -> str:
        """Return the peer address this connection talks to."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once close() has been called."""

    @abstractmethod
    async def call(self, method: GatewayMethod, payload: bytes, timeout: float) -> bytes:
        """
        Send one encoded gateway request and return the encoded response.

        Must raise ConnectionClosedError without touching the network when the
        connection is closed, and LedgerTimeoutError when `timeout` elapses.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the channel. Safe to call more than once."""

    async def __aenter__(self) -> "LedgerConnection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
