"""Pytest fixtures for the ledger gateway tests."""

import pytest

from policy_ledger.ledger.clients.mocks.credentials import generate_key_material
from policy_ledger.ledger.clients.mocks.peer import MockLedgerPeer
from policy_ledger.ledger.contracts.interfaces import Deadlines
from policy_ledger.ledger.gateway import TransactionGateway
from policy_ledger.ledger.identity import CredentialsProvider
from policy_ledger.ledger.policy_client import PolicyLedgerClient


@pytest.fixture
def key_material():
    """Throwaway P-256 key and self-signed certificate."""
    return generate_key_material()


@pytest.fixture
def msp_dirs(tmp_path, key_material):
    """keystore/ and signcerts/ directories laid out like an MSP folder."""
    keystore = tmp_path / "msp" / "keystore"
    signcerts = tmp_path / "msp" / "signcerts"
    keystore.mkdir(parents=True)
    signcerts.mkdir(parents=True)
    (keystore / "priv_sk").write_bytes(key_material.private_key)
    (signcerts / "cert.pem").write_bytes(key_material.certificate)
    return keystore, signcerts


@pytest.fixture
def credentials(msp_dirs):
    keystore, signcerts = msp_dirs
    return CredentialsProvider("Org1MSP", keystore, signcerts)


@pytest.fixture
def peer():
    """In-memory ledger peer hosting the insurance contract."""
    return MockLedgerPeer()


@pytest.fixture
def gateway(peer, credentials):
    return TransactionGateway(peer, credentials, channel_name="mychannel", contract_name="insurance")


@pytest.fixture
def client(gateway):
    return PolicyLedgerClient(gateway)


@pytest.fixture
def short_deadlines():
    return Deadlines(evaluate=0.05, endorse=0.05, submit=0.05, commit_status=0.05)
