"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from policy_ledger.api.dependencies import build_credentials, open_connection
from policy_ledger.api.policy_router import api as policy_api
from policy_ledger.error_handler import ErrorHandler
from policy_ledger.ledger.contracts.interfaces import LedgerConnection
from policy_ledger.ledger.errors import ClassifiedFailure
from policy_ledger.ledger.gateway import CredentialsSource, TransactionGateway
from policy_ledger.ledger.policy_client import PolicyLedgerClient
from policy_ledger.utils.config_loader import GatewayConfig, load_gateway_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

error_handler = ErrorHandler()


def create_app(
    config: Optional[GatewayConfig] = None,
    connection: Optional[LedgerConnection] = None,
    credentials: Optional[CredentialsSource] = None,
) -> FastAPI:
    """
    Build the REST app. The ledger connection is opened once at startup, shared
    by every request and closed at shutdown. Passing `connection` or
    `credentials` skips the config-driven construction (tests, scripts).
    """
    if config is None:
        config = load_gateway_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Policy Ledger API (channel=%s, contract=%s)...", config.channel_name, config.contract_name)
        ledger_connection = connection or await open_connection(config)
        gateway = TransactionGateway.from_config(
            ledger_connection,
            config,
            credentials or build_credentials(config),
        )
        app.state.gateway = gateway
        app.state.policy_client = PolicyLedgerClient(gateway)
        try:
            yield
        finally:
            await ledger_connection.close()
            logger.info("Policy Ledger API stopped")

    app = FastAPI(
        title="Policy Ledger API",
        description="Insurance policy lifecycle on a ledger peer",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.exception_handler(ClassifiedFailure)
    async def classified_failure_handler(request: Request, exc: ClassifiedFailure):
        payload = error_handler.handle_failure(exc, {"path": request.url.path})
        return JSONResponse(status_code=error_handler.status_code, content=payload)

    @app.get("/health", tags=["Health"])
    async def health(request: Request):
        gateway: TransactionGateway = request.app.state.gateway
        return {
            "status": "closed" if gateway.connection.closed else "ok",
            "peer": gateway.connection.target,
            "channel": gateway.channel_name,
            "contract": gateway.contract_name,
        }

    app.include_router(policy_api)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3000")))
