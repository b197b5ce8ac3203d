"""
Insurance policy lifecycle client.

A typed facade over TransactionGateway: one method per contract operation,
with policy payloads normalised into PolicyRecord models. The contract decides
what is legal (e.g. cancelling a cancelled policy); rejections arrive as
ChaincodeRejectedError untouched.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from .contracts.policy import PolicyRecord, matured_balance, normalize_policy_list, normalize_policy_record
from .errors import MalformedResponseError
from .gateway import TransactionGateway

logger = logging.getLogger(__name__)


def _expect_number(value: Any, operation: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponseError(f"{operation} returned {type(value).__name__}; expected a number")
    return value


def _expect_int(value: Any, operation: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedResponseError(f"{operation} returned {type(value).__name__}; expected an integer")
    return value


class PolicyLedgerClient:
    def __init__(self, gateway: TransactionGateway) -> None:
        self.gateway = gateway

    # -- Ledger --

    async def init_ledger(self) -> None:
        await self.gateway.submit("InitLedger")

    # -- Policies --

    async def create_life_insurance_policy(
        self,
        holder_name: str,
        premium: float,
        coverage: float,
        effective_date: str,
        expiration_date: str,
    ) -> int:
        result = await self.gateway.submit(
            "CreateLifeInsurancePolicy", holder_name, premium, coverage, effective_date, expiration_date
        )
        return _expect_int(result, "CreateLifeInsurancePolicy")

    async def create_health_insurance_policy(
        self,
        holder_name: str,
        age: int,
        location: str = "",
        company_name: str = "",
        package_name: str = "",
        premium: float = 0,
        installment_no: int = 0,
        profit_percentage: float = 0,
    ) -> int:
        result = await self.gateway.submit(
            "CreateHealthInsurancePolicy",
            holder_name,
            age,
            location,
            company_name,
            package_name,
            premium,
            installment_no,
            profit_percentage,
        )
        return _expect_int(result, "CreateHealthInsurancePolicy")

    async def read_policy(self, policy_id: int) -> PolicyRecord:
        return normalize_policy_record(await self.gateway.evaluate("ReadPolicy", policy_id))

    async def get_all_policies(self) -> List[PolicyRecord]:
        return normalize_policy_list(await self.gateway.evaluate("GetAllPolicies"))

    async def get_total_policies_count(self) -> int:
        return _expect_int(await self.gateway.evaluate("GetTotalPoliciesCount"), "GetTotalPoliciesCount")

    async def update_policy(
        self,
        policy_id: int,
        holder_name: str,
        policy_type: str,
        premium: float,
        coverage: float,
        installment_no: int,
        total_premium_to_pay: float,
    ) -> None:
        await self.gateway.submit(
            "UpdatePolicy",
            policy_id,
            holder_name,
            policy_type,
            premium,
            coverage,
            installment_no,
            total_premium_to_pay,
        )

    async def delete_policy(self, policy_id: int) -> None:
        await self.gateway.submit("DeletePolicy", policy_id)

    # -- Installments & payments --

    async def get_installment_no(self, policy_id: int) -> int:
        return _expect_int(await self.gateway.evaluate("GetInstallmentNo", policy_id), "GetInstallmentNo")

    async def set_installment_no(self, policy_id: int, new_installment_no: int) -> None:
        await self.gateway.submit("SetInstallmentNo", policy_id, new_installment_no)

    async def pay_premium(self, policy_id: int, amount: float) -> None:
        # Not idempotent: a retried call after a timeout may pay twice.
        await self.gateway.submit("PayPremium", policy_id, amount)

    async def get_total_paid(self, policy_id: int) -> float:
        return _expect_number(await self.gateway.evaluate("GetTotalPaid", policy_id), "GetTotalPaid")

    # -- Claims & cancellation --

    async def claim_coverage(self, policy_id: int) -> None:
        await self.gateway.submit("ClaimCoverage", policy_id)

    async def cancel_policy(self, policy_id: int) -> None:
        await self.gateway.submit("Cancel", policy_id)

    # -- Profit percentage & maturity --

    async def get_profit_percentage_default(self) -> float:
        value = await self.gateway.evaluate("GetProfitPercentageDefault")
        return _expect_number(value, "GetProfitPercentageDefault")

    async def update_profit_percentage_default(self, new_profit_percentage: float) -> None:
        await self.gateway.submit("UpdateProfitPercentageDefault", new_profit_percentage)

    async def calculate_maturity(
        self,
        premium: float,
        installment_no: int,
        profit_percentage: Optional[float] = None,
    ) -> float:
        """Matured balance; a missing or non-positive percentage uses the ledger default."""
        if profit_percentage is None or profit_percentage <= 0:
            profit_percentage = await self.get_profit_percentage_default()
            logger.debug("Using ledger default profit percentage %s", profit_percentage)
        return matured_balance(premium, installment_no, profit_percentage)
