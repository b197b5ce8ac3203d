"""
Policy contracts.

Shapes of the policy records the insurance contract returns, plus the
client-side maturity calculation. Field aliases match the JSON keys the
contract writes to the ledger.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import InvalidArgumentsError, MalformedResponseError


class PolicyStatus(str, Enum):
    ACTIVE = "Active"
    CANCELLED = "Cancelled"
    CLAIMED = "Claimed"
    EXPIRED = "Expired"


class PolicyRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="ID")
    holder_name: str = Field(alias="HolderName")
    age: int = Field(default=0, alias="Age")
    location: str = Field(default="", alias="Location")
    company_name: str = Field(default="", alias="CompanyName")
    policy_type: str = Field(default="", alias="PolicyType")
    package_name: str = Field(default="", alias="PackageName")
    premium: float = Field(alias="Premium")
    coverage: float = Field(alias="Coverage")
    effective_date: str = Field(default="", alias="EffectiveDate")
    expiration_date: str = Field(default="", alias="ExpirationDate")
    total_paid: float = Field(default=0.0, alias="TotalPaid")
    payment_count: int = Field(default=0, alias="PaymentCount")
    last_payment_time: Optional[str] = Field(default=None, alias="LastPaymentTime")
    user_balance: float = Field(default=0.0, alias="UserBalance")
    policy_status: PolicyStatus = Field(default=PolicyStatus.ACTIVE, alias="PolicyStatus")
    installment_no: int = Field(default=0, alias="InstallmentNo")
    total_premium_to_pay: float = Field(default=0.0, alias="TotalPremiumToPay")

    def to_ledger_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def normalize_policy_record(raw: Any) -> PolicyRecord:
    if not isinstance(raw, dict):
        raise MalformedResponseError(f"Expected a policy object; got {type(raw).__name__}")
    try:
        return PolicyRecord.model_validate(raw)
    except ValidationError as exc:
        raise MalformedResponseError(f"Policy record validation failed: {exc}") from exc


def normalize_policy_list(raw: Any) -> List[PolicyRecord]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedResponseError(f"Expected a list of policies; got {type(raw).__name__}")
    return [normalize_policy_record(item) for item in raw]


def matured_balance(premium: float, installment_no: int, profit_percentage: float) -> float:
    """
    Compound growth of a fixed premium paid `installment_no` times.

    The k-th installment (0-based) grows for `installment_no - k` periods:

        sum(premium * (1 + p/100) ** (n - k) for k in range(n))

    premium=10000, installment_no=3, profit_percentage=10 gives
    13310 + 12100 + 11000 = 36410.
    """
    if installment_no < 0:
        raise InvalidArgumentsError(f"installmentNo must not be negative; got {installment_no}")
    rate = 1 + profit_percentage / 100
    return sum(premium * rate ** (installment_no - k) for k in range(installment_no))
