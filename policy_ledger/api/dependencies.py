import logging
from typing import Optional

from fastapi import Request

from policy_ledger.ledger.contracts.interfaces import LedgerConnection
from policy_ledger.ledger.gateway import CredentialsSource
from policy_ledger.ledger.policy_client import PolicyLedgerClient
from policy_ledger.utils.config_loader import GatewayConfig, LedgerMode

logger = logging.getLogger(__name__)


async def open_connection(config: GatewayConfig, ready_timeout: Optional[float] = None) -> LedgerConnection:
    """Mock vs real peer selection; the only place that decides it."""
    if config.ledger_mode == LedgerMode.MOCK:
        from policy_ledger.ledger.clients.mocks.peer import MockLedgerPeer

        logger.info("LEDGER_MODE=mock; using in-memory ledger peer")
        return MockLedgerPeer(channel_name=config.channel_name, contract_name=config.contract_name)

    from policy_ledger.ledger.clients.real_grpc.connection import connect

    if ready_timeout is None:
        ready_timeout = config.peer.connect_timeout
    return await connect(config.endpoint(), ready_timeout=ready_timeout)


def build_credentials(config: GatewayConfig) -> CredentialsSource:
    if config.ledger_mode == LedgerMode.MOCK and not config.key_directory.is_dir():
        from policy_ledger.ledger.clients.mocks.credentials import ephemeral_credentials_provider

        return ephemeral_credentials_provider(config.msp_id)
    return config.credentials_provider()


def get_policy_client(request: Request) -> PolicyLedgerClient:
    return request.app.state.policy_client
