from pathlib import Path

import pytest
from pydantic import ValidationError

from policy_ledger.ledger.contracts.interfaces import Deadlines, GatewayMethod
from policy_ledger.ledger.errors import ConnectionFailureError
from policy_ledger.utils.config_loader import LedgerMode, load_gateway_config


def test_defaults_follow_test_network_layout():
    config = load_gateway_config(environ={})

    assert config.channel_name == "mychannel"
    assert config.contract_name == "insurance"
    assert config.msp_id == "Org1MSP"
    assert config.peer.endpoint == "localhost:7051"
    assert config.peer.host_alias == "peer0.org1.example.com"
    assert config.ledger_mode == LedgerMode.REAL
    assert config.key_directory == config.crypto_path / "users" / "User1@org1.example.com" / "msp" / "keystore"
    assert config.cert_directory.name == "signcerts"
    assert config.tls_cert_path == config.crypto_path / "peers" / "peer0.org1.example.com" / "tls" / "ca.crt"
    assert config.deadlines.to_deadlines() == Deadlines()


def test_environment_overrides_yaml(tmp_path):
    config_file = tmp_path / "gateway.yml"
    config_file.write_text(
        "channel_name: yamlchannel\n"
        "contract_name: yamlcontract\n"
        "peer:\n"
        "  endpoint: yamlhost:9051\n"
        "deadlines:\n"
        "  endorse: 30\n",
        encoding="utf-8",
    )
    environ = {
        "CHANNEL_NAME": "envchannel",
        "PEER_HOST_ALIAS": "peer1.org1.example.com",
        "COMMIT_STATUS_TIMEOUT_SECONDS": "90",
        "KEY_DIRECTORY_PATH": "/keys",
        "LEDGER_MODE": "mock",
        "CACHE_CREDENTIALS": "true",
    }

    config = load_gateway_config(config_file, environ=environ)

    assert config.channel_name == "envchannel"
    assert config.contract_name == "yamlcontract"
    assert config.peer.endpoint == "yamlhost:9051"
    assert config.peer.host_alias == "peer1.org1.example.com"
    assert config.key_directory == Path("/keys")
    assert config.ledger_mode == LedgerMode.MOCK
    assert config.cache_credentials is True

    deadlines = config.deadlines.to_deadlines()
    assert deadlines.for_method(GatewayMethod.ENDORSE) == 30
    assert deadlines.for_method(GatewayMethod.COMMIT_STATUS) == 90
    assert deadlines.for_method(GatewayMethod.EVALUATE) == 5


def test_config_is_immutable():
    config = load_gateway_config(environ={})
    with pytest.raises(ValidationError):
        config.channel_name = "other"


def test_invalid_values_fail_validation():
    with pytest.raises(ValidationError):
        load_gateway_config(environ={"ENDORSE_TIMEOUT_SECONDS": "0"})
    with pytest.raises(ValidationError):
        load_gateway_config(environ={"LEDGER_MODE": "hybrid"})


def test_explicit_missing_file_is_an_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_gateway_config(tmp_path / "nope.yml", environ={})


def test_credentials_provider_uses_configured_directories(msp_dirs):
    keystore, signcerts = msp_dirs
    config = load_gateway_config(
        environ={"KEY_DIRECTORY_PATH": str(keystore), "CERT_DIRECTORY_PATH": str(signcerts), "MSP_ID": "Org2MSP"}
    )
    credentials = config.credentials_provider().load()
    assert credentials.identity.organization_id == "Org2MSP"


def test_endpoint_reads_tls_certificate(tmp_path):
    cert = tmp_path / "ca.crt"
    cert.write_bytes(b"root")
    config = load_gateway_config(environ={"TLS_CERT_PATH": str(cert), "PEER_ENDPOINT": "peer0:7051"})
    endpoint = config.endpoint()
    assert endpoint.target == "peer0:7051"
    assert endpoint.tls_root_certificate == b"root"
    assert endpoint.tls_server_name_override == "peer0.org1.example.com"

    missing = load_gateway_config(environ={"TLS_CERT_PATH": str(tmp_path / "missing.crt")})
    with pytest.raises(ConnectionFailureError):
        missing.endpoint()


def test_connect_timeout_from_environment():
    assert load_gateway_config(environ={}).peer.connect_timeout == 10
    config = load_gateway_config(environ={"PEER_CONNECT_TIMEOUT_SECONDS": "2.5"})
    assert config.peer.connect_timeout == 2.5
    with pytest.raises(ValidationError):
        load_gateway_config(environ={"PEER_CONNECT_TIMEOUT_SECONDS": "0"})


def test_config_path_from_environment(tmp_path):
    config_file = tmp_path / "gateway.yml"
    config_file.write_text("contract_name: fromenv\n", encoding="utf-8")

    config = load_gateway_config(environ={"GATEWAY_CONFIG_PATH": str(config_file)})
    assert config.contract_name == "fromenv"

    with pytest.raises(FileNotFoundError):
        load_gateway_config(environ={"GATEWAY_CONFIG_PATH": str(tmp_path / "nope.yml")})


def test_repo_config_file_is_the_fallback(tmp_path, monkeypatch):
    from policy_ledger.utils import config_loader

    default_file = tmp_path / "gateway.yml"
    default_file.write_text("channel_name: repochannel\n", encoding="utf-8")
    monkeypatch.setattr(config_loader, "DEFAULT_CONFIG_PATH", default_file)
    assert load_gateway_config(environ={}).channel_name == "repochannel"

    monkeypatch.setattr(config_loader, "DEFAULT_CONFIG_PATH", tmp_path / "absent.yml")
    assert load_gateway_config(environ={}).channel_name == "mychannel"


def test_shipped_config_matches_defaults():
    from policy_ledger.utils.config_loader import DEFAULT_CONFIG_PATH, GatewayConfig

    assert DEFAULT_CONFIG_PATH.exists()
    assert load_gateway_config(DEFAULT_CONFIG_PATH, environ={}) == GatewayConfig()
