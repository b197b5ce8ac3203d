#!/usr/bin/env python3
"""
Walk through the policy lifecycle against a ledger peer and print each result.

Initialises the ledger, creates a life insurance policy, pays a premium and
reads the policy back. With --mock everything runs against the in-memory peer.

Usage (from repo root):
  python scripts/run_gateway_demo.py --mock
  python scripts/run_gateway_demo.py --config config/gateway.yml --verbose
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from policy_ledger.api.dependencies import build_credentials, open_connection
from policy_ledger.ledger.errors import ClassifiedFailure
from policy_ledger.ledger.gateway import TransactionGateway
from policy_ledger.ledger.policy_client import PolicyLedgerClient
from policy_ledger.utils.config_loader import GatewayConfig, LedgerMode, load_gateway_config

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def print_stage(title: str, data=None):
    print(f"\n--> {title}")
    if data is None:
        print("*** Transaction committed successfully")
    elif isinstance(data, (dict, list)):
        print("*** Result:", json.dumps(data, indent=2, default=str))
    else:
        print("*** Result:", data)


def print_config(config: GatewayConfig):
    print(f"channelName:       {config.channel_name}")
    print(f"chaincodeName:     {config.contract_name}")
    print(f"mspId:             {config.msp_id}")
    print(f"cryptoPath:        {config.crypto_path}")
    print(f"keyDirectoryPath:  {config.key_directory}")
    print(f"certDirectoryPath: {config.cert_directory}")
    print(f"tlsCertPath:       {config.tls_cert_path}")
    print(f"peerEndpoint:      {config.peer.endpoint}")
    print(f"peerHostAlias:     {config.peer.host_alias}")
    print(f"connectTimeout:    {config.peer.connect_timeout}")
    print(f"ledgerMode:        {config.ledger_mode.value}")


async def run(config: GatewayConfig, ready_timeout: Optional[float] = None):
    connection = await open_connection(config, ready_timeout=ready_timeout)
    async with connection:
        gateway = TransactionGateway.from_config(connection, config, build_credentials(config))
        client = PolicyLedgerClient(gateway)

        await client.init_ledger()
        print_stage("Submit Transaction: InitLedger, function creates the initial set of assets on the ledger")

        policy_id = await client.create_life_insurance_policy("saif", 10000, 5000000, "2023-01-01", "2024-01-01")
        print_stage("Submit Transaction: CreateLifeInsurancePolicy, creates new Life Insurance Policy", policy_id)

        installments = await client.get_installment_no(policy_id)
        print_stage("Evaluate Transaction: GetInstallmentNo", installments)

        await client.pay_premium(policy_id, 10000)
        print_stage("Submit Transaction: PayPremium")

        record = await client.read_policy(policy_id)
        print_stage("Evaluate Transaction: ReadPolicy", record.to_ledger_json())

        matured = await client.calculate_maturity(10000, 3, 10)
        print_stage("Client calculation: maturity of 3 x 10000 at 10%", matured)


def main():
    parser = argparse.ArgumentParser(description="Policy ledger gateway walkthrough")
    parser.add_argument("--config", type=Path, help="Optional YAML gateway config")
    parser.add_argument("--mock", action="store_true", help="Use the in-memory ledger peer")
    parser.add_argument(
        "--ready-timeout", type=float, help="Seconds to wait for the TLS handshake (default: peer.connect_timeout)"
    )
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    load_dotenv()
    setup_logging(args.verbose)

    config = load_gateway_config(args.config)
    if args.mock:
        config = config.model_copy(update={"ledger_mode": LedgerMode.MOCK})
    print_config(config)

    try:
        asyncio.run(run(config, args.ready_timeout))
    except ClassifiedFailure as e:
        logger.error("******** FAILED to run the application: %s (%s)", e.message, e.kind.value)
        sys.exit(1)


if __name__ == "__main__":
    main()
