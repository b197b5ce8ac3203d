"""
Utility modules for the policy ledger gateway
"""
from .config_loader import DeadlinesConfig, GatewayConfig, LedgerMode, PeerConfig, load_gateway_config

__all__ = [
    'DeadlinesConfig',
    'GatewayConfig',
    'LedgerMode',
    'PeerConfig',
    'load_gateway_config',
]
