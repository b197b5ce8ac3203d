"""
REST routes for the insurance policy contract.

Each route maps onto exactly one submit or evaluate call. Failures are not
handled here: ClassifiedFailure propagates to the app-level exception handler,
which answers 500 with the failure message and kind.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from policy_ledger.api.dependencies import get_policy_client
from policy_ledger.ledger.contracts.operations import describe_catalog
from policy_ledger.ledger.policy_client import PolicyLedgerClient

logger = logging.getLogger(__name__)

api = APIRouter()


# --------------------------------------------------------------------------- #
# Request bodies
# --------------------------------------------------------------------------- #
class PolicyIdRequest(BaseModel):
    id: int


class SetInstallmentNoRequest(BaseModel):
    id: int
    newInstallmentNo: int


class CreateLifeInsurancePolicyRequest(BaseModel):
    holderName: str
    premium: float
    coverage: float
    effectiveDate: str
    expirationDate: str


class CreateHealthInsurancePolicyRequest(BaseModel):
    holderName: str
    age: int
    location: str = ""
    companyName: str = ""
    packageName: str = ""
    premium: float = 0
    installmentNo: int = 0
    profitPercentage: float = 0


class UpdatePolicyRequest(BaseModel):
    id: int
    holderName: str
    policyType: str
    premium: float
    coverage: float
    installmentNo: int
    totalPremiumToPay: float


class PayPremiumRequest(BaseModel):
    id: int
    amount: float


class CalculateMaturityRequest(BaseModel):
    premium: float
    installmentNo: int = Field(ge=0)
    profitPercentage: Optional[float] = None


class UpdateProfitPercentageRequest(BaseModel):
    newProfitPercentage: float


# --------------------------------------------------------------------------- #
# Ledger
# --------------------------------------------------------------------------- #
@api.post("/initLedger", response_class=PlainTextResponse, tags=["Ledger"])
async def init_ledger(client: PolicyLedgerClient = Depends(get_policy_client)):
    await client.init_ledger()
    return "Ledger initialized successfully"


@api.get("/operations", tags=["Ledger"])
async def list_operations(client: PolicyLedgerClient = Depends(get_policy_client)):
    catalog = client.gateway.catalog
    return describe_catalog(catalog) if catalog is not None else []


# --------------------------------------------------------------------------- #
# Policies
# --------------------------------------------------------------------------- #
@api.post("/createLifeInsurancePolicy", response_class=PlainTextResponse, tags=["Policies"])
async def create_life_insurance_policy(
    payload: CreateLifeInsurancePolicyRequest, client: PolicyLedgerClient = Depends(get_policy_client)
):
    policy_id = await client.create_life_insurance_policy(
        payload.holderName, payload.premium, payload.coverage, payload.effectiveDate, payload.expirationDate
    )
    logger.info("Created life insurance policy %s for %s", policy_id, payload.holderName)
    return f"Life insurance policy {policy_id} created successfully"


@api.post("/createHealthInsurancePolicy", response_class=PlainTextResponse, tags=["Policies"])
async def create_health_insurance_policy(
    payload: CreateHealthInsurancePolicyRequest, client: PolicyLedgerClient = Depends(get_policy_client)
):
    policy_id = await client.create_health_insurance_policy(
        payload.holderName,
        payload.age,
        payload.location,
        payload.companyName,
        payload.packageName,
        payload.premium,
        payload.installmentNo,
        payload.profitPercentage,
    )
    logger.info("Created health insurance policy %s for %s", policy_id, payload.holderName)
    return f"Health insurance policy {policy_id} created successfully"


@api.get("/policy/{policy_id}", tags=["Policies"])
async def get_policy(policy_id: int, client: PolicyLedgerClient = Depends(get_policy_client)):
    record = await client.read_policy(policy_id)
    return record.to_ledger_json()


@api.get("/policies", tags=["Policies"])
async def list_policies(client: PolicyLedgerClient = Depends(get_policy_client)):
    return [record.to_ledger_json() for record in await client.get_all_policies()]


@api.get("/policiesCount", tags=["Policies"])
async def count_policies(client: PolicyLedgerClient = Depends(get_policy_client)):
    return await client.get_total_policies_count()


@api.post("/updatePolicy", response_class=PlainTextResponse, tags=["Policies"])
async def update_policy(payload: UpdatePolicyRequest, client: PolicyLedgerClient = Depends(get_policy_client)):
    await client.update_policy(
        payload.id,
        payload.holderName,
        payload.policyType,
        payload.premium,
        payload.coverage,
        payload.installmentNo,
        payload.totalPremiumToPay,
    )
    return f"Policy with ID {payload.id} updated successfully"


@api.post("/deletePolicy", response_class=PlainTextResponse, tags=["Policies"])
async def delete_policy(payload: PolicyIdRequest, client: PolicyLedgerClient = Depends(get_policy_client)):
    await client.delete_policy(payload.id)
    return f"Policy with ID {payload.id} has been deleted"


# --------------------------------------------------------------------------- #
# Installments & payments
# --------------------------------------------------------------------------- #
@api.get("/installmentNo/{policy_id}", tags=["Payments"])
async def get_installment_no(policy_id: int, client: PolicyLedgerClient = Depends(get_policy_client)):
    return await client.get_installment_no(policy_id)


@api.post("/setInstallmentNo", response_class=PlainTextResponse, tags=["Payments"])
async def set_installment_no(payload: SetInstallmentNoRequest, client: PolicyLedgerClient = Depends(get_policy_client)):
    await client.set_installment_no(payload.id, payload.newInstallmentNo)
    return f"Installment number for policy ID {payload.id} set to {payload.newInstallmentNo}"


@api.post("/payPremium", response_class=PlainTextResponse, tags=["Payments"])
async def pay_premium(payload: PayPremiumRequest, client: PolicyLedgerClient = Depends(get_policy_client)):
    await client.pay_premium(payload.id, payload.amount)
    return "Premium paid successfully"


@api.get("/totalPaid/{policy_id}", tags=["Payments"])
async def get_total_paid(policy_id: int, client: PolicyLedgerClient = Depends(get_policy_client)):
    return await client.get_total_paid(policy_id)


# --------------------------------------------------------------------------- #
# Claims & cancellation
# --------------------------------------------------------------------------- #
@api.post("/claimCoverage", response_class=PlainTextResponse, tags=["Claims"])
async def claim_coverage(payload: PolicyIdRequest, client: PolicyLedgerClient = Depends(get_policy_client)):
    await client.claim_coverage(payload.id)
    return "Coverage claimed successfully"


@api.post("/cancelPolicy", response_class=PlainTextResponse, tags=["Claims"])
async def cancel_policy(payload: PolicyIdRequest, client: PolicyLedgerClient = Depends(get_policy_client)):
    await client.cancel_policy(payload.id)
    return "Policy cancelled successfully"


# --------------------------------------------------------------------------- #
# Profit percentage & maturity
# --------------------------------------------------------------------------- #
@api.get("/profitPercentageDefault", tags=["Maturity"])
async def get_profit_percentage_default(client: PolicyLedgerClient = Depends(get_policy_client)):
    return await client.get_profit_percentage_default()


@api.post("/updateProfitPercentageDefault", response_class=PlainTextResponse, tags=["Maturity"])
async def update_profit_percentage_default(
    payload: UpdateProfitPercentageRequest, client: PolicyLedgerClient = Depends(get_policy_client)
):
    await client.update_profit_percentage_default(payload.newProfitPercentage)
    return f"Default profit percentage set to {payload.newProfitPercentage}"


@api.post("/calculateMaturity", tags=["Maturity"])
async def calculate_maturity(payload: CalculateMaturityRequest, client: PolicyLedgerClient = Depends(get_policy_client)):
    matured = await client.calculate_maturity(payload.premium, payload.installmentNo, payload.profitPercentage)
    return {"maturedBalance": matured}
