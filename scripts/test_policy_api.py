#!/usr/bin/env python3
"""
Smoke test for the policy ledger REST API: init, create, pay, read, maturity.

Start the API first (in another terminal):
  LEDGER_MODE=mock uvicorn policy_ledger.api.main:app --host 127.0.0.1 --port 3000

Then run this script:
  python scripts/test_policy_api.py
  python scripts/test_policy_api.py --base-url http://127.0.0.1:3000 --holder saif

If you see "Connection refused", the API is not running. Start uvicorn as above.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, Optional

import requests


def post(url: str, data: Optional[Dict[str, Any]] = None, timeout: int = 90) -> requests.Response:
    r = requests.post(url, json=data or {}, timeout=timeout)
    r.raise_for_status()
    return r


def get_json(url: str, timeout: int = 30) -> Any:
    r = requests.get(url, timeout=timeout)
    r.raise_for_status()
    return r.json()


def describe_failure(e: requests.RequestException) -> None:
    print(f"   FAIL: {e}")
    if "Connection refused" in str(e) or "Failed to establish" in str(e):
        print("   → Start the API first: uvicorn policy_ledger.api.main:app --host 127.0.0.1 --port 3000")
    if getattr(e, "response", None) is not None:
        try:
            print(f"   Body: {e.response.json()}")
        except ValueError:
            print(f"   Body: {e.response.text[:500]}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Smoke test the policy ledger REST API")
    parser.add_argument("--base-url", default="http://localhost:3000", help="API base URL")
    parser.add_argument("--holder", default="saif", help="Policy holder name")
    args = parser.parse_args()
    base = args.base_url.rstrip("/")

    print("=== Policy ledger API smoke test ===\n")
    print(f"Base URL: {base}\n")

    try:
        print("1) GET /health")
        print(f"   {get_json(f'{base}/health')}\n")

        print("2) POST /initLedger")
        print(f"   {post(f'{base}/initLedger').text}\n")

        print("3) POST /createLifeInsurancePolicy")
        created = post(
            f"{base}/createLifeInsurancePolicy",
            {
                "holderName": args.holder,
                "premium": 10000,
                "coverage": 5000000,
                "effectiveDate": "2023-01-01",
                "expirationDate": "2024-01-01",
            },
        )
        print(f"   {created.text}\n")

        print("4) GET /policiesCount")
        policy_id = get_json(f"{base}/policiesCount")
        print(f"   latest policy id: {policy_id}\n")

        print("5) POST /payPremium")
        print(f"   {post(f'{base}/payPremium', {'id': policy_id, 'amount': 10000}).text}\n")

        print(f"6) GET /policy/{policy_id}")
        policy = get_json(f"{base}/policy/{policy_id}")
        print(json.dumps(policy, indent=2))
        if policy.get("HolderName") != args.holder:
            print(f"   FAIL: expected HolderName {args.holder!r}")
            return 1

        print("\n7) POST /calculateMaturity")
        matured = post(f"{base}/calculateMaturity", {"premium": 10000, "installmentNo": 3, "profitPercentage": 10})
        print(f"   {matured.json()}\n")
    except requests.RequestException as e:
        describe_failure(e)
        return 1

    print("=== All steps passed ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
