"""
Configuration loader for the policy ledger gateway
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from policy_ledger.ledger.contracts.interfaces import Deadlines, EndpointDescriptor
from policy_ledger.ledger.identity import CredentialsProvider

logger = logging.getLogger(__name__)

DEFAULT_CRYPTO_PATH = "../../test-network/organizations/peerOrganizations/org1.example.com"
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "gateway.yml"


class LedgerMode(str, Enum):
    REAL = "real"
    MOCK = "mock"


class DeadlinesConfig(BaseModel):
    """Per-phase deadlines in seconds"""

    model_config = ConfigDict(frozen=True)

    evaluate: float = Field(default=5.0, gt=0)
    endorse: float = Field(default=15.0, gt=0)
    submit: float = Field(default=5.0, gt=0)
    commit_status: float = Field(default=60.0, gt=0)

    def to_deadlines(self) -> Deadlines:
        return Deadlines(
            evaluate=self.evaluate,
            endorse=self.endorse,
            submit=self.submit,
            commit_status=self.commit_status,
        )


class PeerConfig(BaseModel):
    """Peer endpoint and TLS settings"""

    model_config = ConfigDict(frozen=True)

    endpoint: str = "localhost:7051"
    host_alias: str = "peer0.org1.example.com"
    tls_cert_path: Optional[Path] = None
    connect_timeout: float = Field(default=10.0, gt=0)


class GatewayConfig(BaseModel):
    """Complete gateway configuration, read once at startup"""

    model_config = ConfigDict(frozen=True)

    channel_name: str = "mychannel"
    contract_name: str = "insurance"
    msp_id: str = "Org1MSP"
    crypto_path: Path = Path(DEFAULT_CRYPTO_PATH)
    key_directory_path: Optional[Path] = None
    cert_directory_path: Optional[Path] = None
    peer: PeerConfig = Field(default_factory=PeerConfig)
    deadlines: DeadlinesConfig = Field(default_factory=DeadlinesConfig)
    ledger_mode: LedgerMode = LedgerMode.REAL
    cache_credentials: bool = False

    @property
    def key_directory(self) -> Path:
        if self.key_directory_path is not None:
            return self.key_directory_path
        return self.crypto_path / "users" / "User1@org1.example.com" / "msp" / "keystore"

    @property
    def cert_directory(self) -> Path:
        if self.cert_directory_path is not None:
            return self.cert_directory_path
        return self.crypto_path / "users" / "User1@org1.example.com" / "msp" / "signcerts"

    @property
    def tls_cert_path(self) -> Path:
        if self.peer.tls_cert_path is not None:
            return self.peer.tls_cert_path
        return self.crypto_path / "peers" / "peer0.org1.example.com" / "tls" / "ca.crt"

    def credentials_provider(self) -> CredentialsProvider:
        return CredentialsProvider(
            organization_id=self.msp_id,
            key_directory=self.key_directory,
            cert_directory=self.cert_directory,
            cache=self.cache_credentials,
        )

    def endpoint(self) -> EndpointDescriptor:
        # Imported here so that mock mode never touches grpc.
        from policy_ledger.ledger.clients.real_grpc.connection import endpoint_from_address

        return endpoint_from_address(self.peer.endpoint, self.tls_cert_path, self.peer.host_alias)


# environment variable -> (section, key); section None means top level
ENV_OVERRIDES: Dict[str, tuple] = {
    "CHANNEL_NAME": (None, "channel_name"),
    "CHAINCODE_NAME": (None, "contract_name"),
    "MSP_ID": (None, "msp_id"),
    "CRYPTO_PATH": (None, "crypto_path"),
    "KEY_DIRECTORY_PATH": (None, "key_directory_path"),
    "CERT_DIRECTORY_PATH": (None, "cert_directory_path"),
    "LEDGER_MODE": (None, "ledger_mode"),
    "CACHE_CREDENTIALS": (None, "cache_credentials"),
    "PEER_ENDPOINT": ("peer", "endpoint"),
    "PEER_HOST_ALIAS": ("peer", "host_alias"),
    "TLS_CERT_PATH": ("peer", "tls_cert_path"),
    "PEER_CONNECT_TIMEOUT_SECONDS": ("peer", "connect_timeout"),
    "EVALUATE_TIMEOUT_SECONDS": ("deadlines", "evaluate"),
    "ENDORSE_TIMEOUT_SECONDS": ("deadlines", "endorse"),
    "SUBMIT_TIMEOUT_SECONDS": ("deadlines", "submit"),
    "COMMIT_STATUS_TIMEOUT_SECONDS": ("deadlines", "commit_status"),
}


def _apply_environment(data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    for name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(name)
        if value is None or value == "":
            continue
        if section is None:
            data[key] = value
        else:
            data.setdefault(section, {})
            data[section] = {**data[section], key: value}
    return data


def load_gateway_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> GatewayConfig:
    """
    Build the immutable gateway configuration

    Args:
        config_path: YAML file. Defaults to GATEWAY_CONFIG_PATH from the
            environment, then config/gateway.yml when it exists. A path
            given explicitly (argument or variable) must exist.
        environ: Environment mapping; defaults to os.environ

    Returns:
        Validated GatewayConfig object

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        ValidationError: If the merged settings don't match the schema
    """
    if environ is None:
        environ = os.environ
    if config_path is None and environ.get("GATEWAY_CONFIG_PATH"):
        config_path = Path(environ["GATEWAY_CONFIG_PATH"])
    elif config_path is None and DEFAULT_CONFIG_PATH.exists():
        config_path = DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {}
    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Reading gateway config from %s", config_path)

    data = _apply_environment(data, environ)

    try:
        config = GatewayConfig(**data)
    except ValidationError as e:
        logger.error("Gateway config validation failed: %s", e)
        raise

    logger.info(
        "Gateway config loaded: channel=%s contract=%s msp=%s peer=%s mode=%s",
        config.channel_name,
        config.contract_name,
        config.msp_id,
        config.peer.endpoint,
        config.ledger_mode.value,
    )
    return config
