import asyncio

import grpc
import pytest

from policy_ledger.ledger.clients.real_grpc.connection import (
    GATEWAY_SERVICE,
    GrpcLedgerConnection,
    connect,
    endpoint_from_address,
    read_tls_root_certificate,
)
from policy_ledger.ledger.contracts.interfaces import EndpointDescriptor, GatewayMethod
from policy_ledger.ledger.errors import (
    ChaincodeRejectedError,
    ConnectionClosedError,
    ConnectionFailureError,
    LedgerTimeoutError,
)


class FakeChannel:
    """Stands in for grpc.aio.Channel; records paths and replays one outcome."""

    def __init__(self, outcome=b"{}", ready=True):
        self.outcome = outcome
        self.ready = ready
        self.paths = []
        self.closed = False

    def unary_unary(self, path):
        self.paths.append(path)

        async def rpc(payload, timeout=None):
            if isinstance(self.outcome, Exception):
                raise self.outcome
            return self.outcome

        return rpc

    async def channel_ready(self):
        if not self.ready:
            await asyncio.Event().wait()

    async def close(self):
        self.closed = True


def _rpc_error(code, details="boom"):
    return grpc.aio.AioRpcError(code, grpc.aio.Metadata(), grpc.aio.Metadata(), details=details)


def _endpoint():
    return EndpointDescriptor(host="localhost", port=7051, tls_root_certificate=b"", tls_server_name_override="peer0")


def test_unreadable_tls_certificate_is_connection_failure(tmp_path):
    with pytest.raises(ConnectionFailureError):
        read_tls_root_certificate(tmp_path / "missing.crt")


def test_endpoint_requires_host_and_port(tmp_path):
    cert = tmp_path / "ca.crt"
    cert.write_bytes(b"pem")
    with pytest.raises(ConnectionFailureError):
        endpoint_from_address("localhost", cert)

    endpoint = endpoint_from_address("localhost:7051", cert, "peer0.org1.example.com")
    assert endpoint.target == "localhost:7051"
    assert endpoint.tls_root_certificate == b"pem"
    assert endpoint.tls_server_name_override == "peer0.org1.example.com"


@pytest.mark.asyncio
async def test_call_uses_generic_gateway_method_path():
    channel = FakeChannel(outcome=b'{"ok":true}')
    connection = GrpcLedgerConnection(_endpoint(), channel=channel)

    assert await connection.call(GatewayMethod.EVALUATE, b"{}", timeout=1.0) == b'{"ok":true}'
    assert channel.paths == [f"/{GATEWAY_SERVICE}/Evaluate"]


@pytest.mark.asyncio
async def test_closed_connection_raises_without_io():
    channel = FakeChannel()
    connection = GrpcLedgerConnection(_endpoint(), channel=channel)
    await connection.close()
    await connection.close()

    with pytest.raises(ConnectionClosedError):
        await connection.call(GatewayMethod.SUBMIT, b"{}", timeout=1.0)
    assert channel.closed
    assert channel.paths == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code,expected",
    [
        (grpc.StatusCode.DEADLINE_EXCEEDED, LedgerTimeoutError),
        (grpc.StatusCode.UNAVAILABLE, ConnectionFailureError),
        (grpc.StatusCode.ABORTED, ChaincodeRejectedError),
        (grpc.StatusCode.PERMISSION_DENIED, ChaincodeRejectedError),
    ],
)
async def test_status_codes_are_classified(code, expected):
    connection = GrpcLedgerConnection(_endpoint(), channel=FakeChannel(outcome=_rpc_error(code)))
    with pytest.raises(expected) as exc_info:
        await connection.call(GatewayMethod.ENDORSE, b"{}", timeout=1.0)
    assert isinstance(exc_info.value.__cause__, grpc.aio.AioRpcError)


@pytest.mark.asyncio
async def test_rejection_keeps_remote_message_verbatim():
    error = _rpc_error(grpc.StatusCode.ABORTED, details="policy 9 does not exist")
    connection = GrpcLedgerConnection(_endpoint(), channel=FakeChannel(outcome=error))
    with pytest.raises(ChaincodeRejectedError) as exc_info:
        await connection.call(GatewayMethod.ENDORSE, b"{}", timeout=1.0)
    assert exc_info.value.message == "policy 9 does not exist"


@pytest.fixture
def fake_channel(monkeypatch):
    channel = FakeChannel()
    monkeypatch.setattr(GrpcLedgerConnection, "_open_channel", staticmethod(lambda endpoint: channel))
    return channel


@pytest.mark.asyncio
async def test_connect_waits_for_ready_channel(fake_channel):
    connection = await connect(_endpoint(), ready_timeout=0.5)
    assert connection.target == "localhost:7051"
    assert not connection.closed
    assert not fake_channel.closed


@pytest.mark.asyncio
async def test_unreachable_peer_fails_connect_and_closes_channel(fake_channel):
    fake_channel.ready = False
    with pytest.raises(ConnectionFailureError, match="not reachable within 0.05s"):
        await connect(_endpoint(), ready_timeout=0.05)
    assert fake_channel.closed


@pytest.mark.asyncio
async def test_open_connection_uses_configured_connect_timeout(fake_channel, tmp_path):
    from policy_ledger.api.dependencies import open_connection
    from policy_ledger.utils.config_loader import load_gateway_config

    cert = tmp_path / "ca.crt"
    cert.write_bytes(b"root")
    config = load_gateway_config(environ={"TLS_CERT_PATH": str(cert), "PEER_CONNECT_TIMEOUT_SECONDS": "0.05"})

    fake_channel.ready = False
    with pytest.raises(ConnectionFailureError, match="0.05s"):
        await open_connection(config)
