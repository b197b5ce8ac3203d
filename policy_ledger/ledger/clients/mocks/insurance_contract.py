"""
In-memory insurance contract.

⚠️  Development/test double. It reproduces the business rules of the deployed
    insurance contract so the gateway, the REST layer and the demo script can
    run end-to-end without a ledger network. It receives the same ordered
    string arguments the real contract receives and returns the same JSON
    payloads.

State is a plain dict of key -> JSON text, passed in by the mock peer so
endorsement can run against a copy and only committed transactions touch the
peer's real state.
"""

import inspect
import json
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, MutableMapping

from ...contracts.policy import PolicyStatus, matured_balance

logger = logging.getLogger(__name__)

COUNTER_KEY = "policyCounter"
PROFIT_PERCENTAGE_KEY = "profitPercentageDefault"
DEFAULT_PROFIT_PERCENTAGE = 13.0
MIN_PAYMENT_INTERVAL_SECONDS = 10.0
ZERO_TIME = "0001-01-01T00:00:00Z"

PACKAGES: Dict[str, Dict[str, float]] = {
    "Silver": {"Premium": 11112, "InstallmentNo": 18, "Coverage": 540000},
    "Gold": {"Premium": 10000, "InstallmentNo": 20, "Coverage": 800000},
    "Platinum": {"Premium": 13087, "InstallmentNo": 25, "Coverage": 1410000},
}

State = MutableMapping[str, str]


class ContractError(Exception):
    """Business-rule rejection; the peer reports it as a failed proposal."""


def _int_arg(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ContractError(f"error converting parameter {name}: {value!r} is not an integer") from None


def _float_arg(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ContractError(f"error converting parameter {name}: {value!r} is not a number") from None


def _isoformat(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class InsuranceContract:
    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        min_payment_interval: float = MIN_PAYMENT_INTERVAL_SECONDS,
    ) -> None:
        self.clock = clock
        self.min_payment_interval = min_payment_interval
        self._functions: Dict[str, Callable[..., Any]] = {
            "InitLedger": self.init_ledger,
            "CreateLifeInsurancePolicy": self.create_life_insurance_policy,
            "CreateHealthInsurancePolicy": self.create_health_insurance_policy,
            "ReadPolicy": self.read_policy,
            "UpdatePolicy": self.update_policy,
            "DeletePolicy": self.delete_policy,
            "GetInstallmentNo": self.get_installment_no,
            "SetInstallmentNo": self.set_installment_no,
            "PayPremium": self.pay_premium,
            "ClaimCoverage": self.claim_coverage,
            "Cancel": self.cancel,
            "GetTotalPaid": self.get_total_paid,
            "GetAllPolicies": self.get_all_policies,
            "GetTotalPoliciesCount": self.get_total_policies_count,
            "GetProfitPercentageDefault": self.get_profit_percentage_default,
            "UpdateProfitPercentageDefault": self.update_profit_percentage_default,
        }

    def invoke(self, state: State, function: str, args: List[str]) -> bytes:
        """Run one contract function; returns the JSON payload (empty for no result)."""
        handler = self._functions.get(function)
        if handler is None:
            raise ContractError(f"Function {function} not found in contract SmartContract")
        try:
            inspect.signature(handler).bind(state, *args)
        except TypeError:
            raise ContractError(f"Incorrect number of params. Got {len(args)} for {function}") from None
        result = handler(state, *args)
        if result is None:
            return b""
        return json.dumps(result).encode("utf-8")

    # -- helpers --

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc)

    def _load(self, state: State, policy_id: int) -> Dict[str, Any]:
        raw = state.get(str(policy_id))
        if raw is None:
            raise ContractError(f"policy {policy_id} does not exist")
        return json.loads(raw)

    def _store(self, state: State, policy: Dict[str, Any]) -> None:
        state[str(policy["ID"])] = json.dumps(policy)

    def _counter(self, state: State) -> int:
        raw = state.get(COUNTER_KEY)
        if raw is None:
            raise ContractError("counter does not exist")
        return int(raw)

    def _next_id(self, state: State) -> int:
        counter = self._counter(state) + 1
        state[COUNTER_KEY] = str(counter)
        return counter

    def _profit_default(self, state: State) -> float:
        return float(state.get(PROFIT_PERCENTAGE_KEY, DEFAULT_PROFIT_PERCENTAGE))

    def _new_policy(self, state: State, **fields: Any) -> Dict[str, Any]:
        policy = {
            "ID": self._next_id(state),
            "HolderName": "",
            "Age": 0,
            "Location": "",
            "CompanyName": "",
            "PolicyType": "",
            "PackageName": "",
            "Premium": 0,
            "Coverage": 0,
            "EffectiveDate": "",
            "ExpirationDate": "",
            "TotalPaid": 0,
            "PaymentCount": 0,
            "LastPaymentTime": ZERO_TIME,
            "UserBalance": 0,
            "PolicyStatus": PolicyStatus.ACTIVE.value,
            "InstallmentNo": 0,
            "TotalPremiumToPay": 0,
        }
        policy.update(fields)
        self._store(state, policy)
        return policy

    # -- contract functions --

    def init_ledger(self, state: State) -> None:
        state[COUNTER_KEY] = "0"
        logger.debug("Policy counter reset")

    def create_life_insurance_policy(
        self, state: State, holder_name: str, premium: str, coverage: str, effective_date: str, expiration_date: str
    ) -> int:
        premium_value = _float_arg(premium, "premium")
        # Single-premium life cover; SetInstallmentNo spreads it out afterwards.
        policy = self._new_policy(
            state,
            HolderName=holder_name,
            PolicyType="life",
            Premium=premium_value,
            Coverage=_float_arg(coverage, "coverage"),
            EffectiveDate=effective_date,
            ExpirationDate=expiration_date,
            InstallmentNo=1,
            TotalPremiumToPay=premium_value,
        )
        return policy["ID"]

    def create_health_insurance_policy(
        self,
        state: State,
        holder_name: str,
        age: str,
        location: str,
        company_name: str,
        package_name: str,
        premium: str,
        installment_no: str,
        profit_percentage: str,
    ) -> int:
        premium_value = _float_arg(premium, "premium")
        installments = _int_arg(installment_no, "installmentNo")
        if package_name:
            package = PACKAGES.get(package_name)
            if package is None:
                raise ContractError(f"package {package_name} does not exist")
            premium_value = package["Premium"]
            installments = int(package["InstallmentNo"])
            coverage = package["Coverage"]
        else:
            percentage = _float_arg(profit_percentage, "profitPercentage")
            if percentage <= 0:
                percentage = self._profit_default(state)
            coverage = matured_balance(premium_value, installments, percentage)

        effective = self._now()
        policy = self._new_policy(
            state,
            HolderName=holder_name,
            Age=_int_arg(age, "age"),
            Location=location,
            CompanyName=company_name,
            PolicyType="Health",
            PackageName=package_name,
            Premium=premium_value,
            Coverage=coverage,
            EffectiveDate=_isoformat(effective),
            ExpirationDate=_isoformat(effective + timedelta(minutes=5)),
            InstallmentNo=installments,
            TotalPremiumToPay=premium_value * installments,
        )
        return policy["ID"]

    def read_policy(self, state: State, policy_id: str) -> Dict[str, Any]:
        return self._load(state, _int_arg(policy_id, "id"))

    def update_policy(
        self,
        state: State,
        policy_id: str,
        holder_name: str,
        policy_type: str,
        premium: str,
        coverage: str,
        installment_no: str,
        total_premium_to_pay: str,
    ) -> None:
        policy = self._load(state, _int_arg(policy_id, "id"))
        policy.update(
            HolderName=holder_name,
            PolicyType=policy_type,
            Premium=_float_arg(premium, "premium"),
            Coverage=_float_arg(coverage, "coverage"),
            InstallmentNo=_int_arg(installment_no, "installmentNo"),
            TotalPremiumToPay=_float_arg(total_premium_to_pay, "totalPremiumToPay"),
        )
        self._store(state, policy)

    def delete_policy(self, state: State, policy_id: str) -> None:
        state.pop(str(_int_arg(policy_id, "id")), None)

    def get_installment_no(self, state: State, policy_id: str) -> int:
        return self._load(state, _int_arg(policy_id, "id"))["InstallmentNo"]

    def set_installment_no(self, state: State, policy_id: str, new_installment_no: str) -> None:
        installments = _int_arg(new_installment_no, "newInstallmentNo")
        if installments <= 0:
            raise ContractError("installment number must be greater than zero")
        policy = self._load(state, _int_arg(policy_id, "id"))
        policy["InstallmentNo"] = installments
        self._store(state, policy)

    def pay_premium(self, state: State, policy_id: str, amount: str) -> None:
        policy = self._load(state, _int_arg(policy_id, "id"))
        value = _float_arg(amount, "amount")

        if policy["PolicyStatus"] != PolicyStatus.ACTIVE.value:
            raise ContractError("cannot pay premium on a policy that is not active")
        if policy["PaymentCount"] >= policy["InstallmentNo"]:
            raise ContractError("maximum number of premium payments reached")
        if value <= 0:
            raise ContractError("payment amount must be greater than zero")

        now = self._now()
        if policy["LastPaymentTime"] != ZERO_TIME:
            last = datetime.strptime(policy["LastPaymentTime"], "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=timezone.utc)
            if (now - last).total_seconds() < self.min_payment_interval:
                raise ContractError(f"payment can only be made after {self.min_payment_interval:g} Second")

        policy["TotalPaid"] += value
        policy["PaymentCount"] += 1
        policy["LastPaymentTime"] = _isoformat(now)
        self._store(state, policy)

    def claim_coverage(self, state: State, policy_id: str) -> None:
        policy = self._load(state, _int_arg(policy_id, "id"))
        if policy["PolicyStatus"] == PolicyStatus.CLAIMED.value:
            raise ContractError("coverage for this policy has already been claimed")
        if policy["TotalPaid"] < policy["TotalPremiumToPay"]:
            raise ContractError("total paid amount is below the TotalPremiumToPay")
        policy["UserBalance"] += policy["Coverage"]
        policy["PolicyStatus"] = PolicyStatus.CLAIMED.value
        self._store(state, policy)

    def cancel(self, state: State, policy_id: str) -> None:
        policy = self._load(state, _int_arg(policy_id, "id"))
        if policy["PolicyStatus"] == PolicyStatus.CANCELLED.value:
            raise ContractError("coverage for this policy has already been Cancelled")
        if policy["TotalPaid"] >= policy["TotalPremiumToPay"]:
            raise ContractError("policy is fully paid and can no longer be cancelled")
        policy["UserBalance"] += policy["TotalPaid"]
        policy["PolicyStatus"] = PolicyStatus.CANCELLED.value
        self._store(state, policy)

    def get_total_paid(self, state: State, policy_id: str) -> float:
        return self._load(state, _int_arg(policy_id, "id"))["TotalPaid"]

    def get_all_policies(self, state: State) -> List[Dict[str, Any]]:
        total = self._counter(state)
        return [json.loads(state[str(i)]) for i in range(1, total + 1) if str(i) in state]

    def get_total_policies_count(self, state: State) -> int:
        return self._counter(state)

    def get_profit_percentage_default(self, state: State) -> float:
        return self._profit_default(state)

    def update_profit_percentage_default(self, state: State, new_percentage: str) -> None:
        value = _float_arg(new_percentage, "newProfitPercentage")
        if value <= 0:
            raise ContractError("profit percentage must be greater than 0")
        state[PROFIT_PERCENTAGE_KEY] = repr(value)

