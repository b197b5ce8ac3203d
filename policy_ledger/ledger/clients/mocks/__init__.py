"""
Mock ledger peer.

Returns realistic contract results without any network I/O. Used when no peer
network is available (LEDGER_MODE=mock) and throughout the test-suite.
"""

from .credentials import ephemeral_credentials_provider, generate_key_material
from .insurance_contract import ContractError, InsuranceContract
from .peer import MockLedgerPeer

__all__ = [
    "ContractError",
    "InsuranceContract",
    "MockLedgerPeer",
    "ephemeral_credentials_provider",
    "generate_key_material",
]
