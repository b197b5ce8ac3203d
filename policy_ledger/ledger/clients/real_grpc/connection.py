"""
Real gRPC connection to a ledger gateway peer.

Purpose:
- Opens ONE TLS channel per peer endpoint and shares it across every session
- Sends already-encoded gateway messages as raw bytes (generic unary calls)
- Maps gRPC status codes onto the ClassifiedFailure taxonomy

Important:
- Keep this module as the ONLY place that imports grpc.
- The channel multiplexes concurrent calls; no locking is needed around call().
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

import grpc

from ...contracts.interfaces import EndpointDescriptor, GatewayMethod, LedgerConnection
from ...errors import (
    ChaincodeRejectedError,
    ClassifiedFailure,
    ConnectionClosedError,
    ConnectionFailureError,
    LedgerTimeoutError,
)

logger = logging.getLogger(__name__)

GATEWAY_SERVICE = "policyledger.Gateway"
DEFAULT_READY_TIMEOUT = 10.0


def read_tls_root_certificate(path: Union[str, Path]) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise ConnectionFailureError(f"Cannot read TLS root certificate {path}: {exc}") from exc


def endpoint_from_address(
    address: str,
    tls_cert_path: Union[str, Path],
    server_name_override: str = "",
) -> EndpointDescriptor:
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ConnectionFailureError(f"Peer endpoint must look like host:port; got {address!r}")
    return EndpointDescriptor(
        host=host,
        port=int(port),
        tls_root_certificate=read_tls_root_certificate(tls_cert_path),
        tls_server_name_override=server_name_override,
    )


class GrpcLedgerConnection(LedgerConnection):
    def __init__(self, endpoint: EndpointDescriptor, channel: Optional[grpc.aio.Channel] = None) -> None:
        self.endpoint = endpoint
        self._channel = channel or self._open_channel(endpoint)
        self._closed = False

    @staticmethod
    def _open_channel(endpoint: EndpointDescriptor) -> grpc.aio.Channel:
        credentials = grpc.ssl_channel_credentials(root_certificates=endpoint.tls_root_certificate)
        options = []
        if endpoint.tls_server_name_override:
            options.append(("grpc.ssl_target_name_override", endpoint.tls_server_name_override))
        return grpc.aio.secure_channel(endpoint.target, credentials, options=options)

    @property
    def target(self) -> str:
        return self.endpoint.target

    @property
    def closed(self) -> bool:
        return self._closed

    async def wait_until_ready(self, timeout: float) -> None:
        try:
            await asyncio.wait_for(self._channel.channel_ready(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise ConnectionFailureError(
                f"Peer {self.target} not reachable within {timeout}s (TLS handshake or DNS failure)"
            ) from exc

    async def call(self, method: GatewayMethod, payload: bytes, timeout: float) -> bytes:
        if self._closed:
            raise ConnectionClosedError(f"Connection to {self.target} is closed")

        # No serializers: requests and responses stay raw bytes for the codec.
        rpc = self._channel.unary_unary(f"/{GATEWAY_SERVICE}/{method.value}")
        try:
            return await rpc(payload, timeout=timeout)
        except grpc.aio.AioRpcError as exc:
            raise self._classify(exc, method, timeout) from exc
        except asyncio.CancelledError:
            if self._closed:
                raise ConnectionClosedError(f"Connection to {self.target} closed during {method.value}") from None
            raise

    def _classify(self, exc: grpc.aio.AioRpcError, method: GatewayMethod, timeout: float) -> ClassifiedFailure:
        code = exc.code()
        details = exc.details() or code.name
        if code == grpc.StatusCode.DEADLINE_EXCEEDED:
            return LedgerTimeoutError(
                f"{method.value} exceeded its {timeout}s deadline", phase=method.value, detail=details
            )
        if code == grpc.StatusCode.CANCELLED and self._closed:
            return ConnectionClosedError(f"Connection to {self.target} closed during {method.value}")
        if code == grpc.StatusCode.UNAVAILABLE:
            return ConnectionFailureError(f"Peer {self.target} unavailable: {details}", detail=code.name)
        logger.warning("%s failed with %s: %s", method.value, code.name, details)
        return ChaincodeRejectedError(details, detail=f"{method.value} returned {code.name}")

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._channel.close()
        logger.info("Closed gRPC connection to %s", self.target)


async def connect(endpoint: EndpointDescriptor, *, ready_timeout: float = DEFAULT_READY_TIMEOUT) -> GrpcLedgerConnection:
    """
    Open the shared TLS channel and wait for it to become ready, so DNS and
    TLS handshake failures surface here. A failure closes the channel before
    raising.
    """
    try:
        connection = GrpcLedgerConnection(endpoint)
    except (ValueError, RuntimeError) as exc:
        raise ConnectionFailureError(f"Cannot create channel to {endpoint.target}: {exc}") from exc

    try:
        await connection.wait_until_ready(ready_timeout)
    except ConnectionFailureError:
        await connection.close()
        raise
    logger.info("Connected to ledger peer %s (server name %s)", endpoint.target, endpoint.tls_server_name_override)
    return connection
