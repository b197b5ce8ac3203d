import json

import pytest

from policy_ledger.ledger.clients.mocks.insurance_contract import COUNTER_KEY, ContractError, InsuranceContract


@pytest.fixture
def contract():
    return InsuranceContract(clock=lambda: 1_700_000_000.0)


@pytest.fixture
def state(contract):
    state = {}
    contract.invoke(state, "InitLedger", [])
    return state


def test_init_ledger_resets_counter(state):
    assert state == {COUNTER_KEY: "0"}


def test_unknown_function_is_rejected(contract, state):
    with pytest.raises(ContractError, match="not found"):
        contract.invoke(state, "TransferPolicy", [])


def test_wrong_argument_count_is_rejected(contract, state):
    with pytest.raises(ContractError, match="Incorrect number of params"):
        contract.invoke(state, "ReadPolicy", [])


def test_non_numeric_argument_is_rejected(contract, state):
    with pytest.raises(ContractError, match="premium"):
        contract.invoke(state, "CreateLifeInsurancePolicy", ["saif", "lots", "5000000", "2023-01-01", "2024-01-01"])


def test_create_returns_id_and_stores_policy(contract, state):
    payload = contract.invoke(state, "CreateLifeInsurancePolicy", ["saif", "10000", "5000000", "2023-01-01", "2024-01-01"])
    assert json.loads(payload) == 1
    stored = json.loads(state["1"])
    assert stored["HolderName"] == "saif"
    assert stored["TotalPremiumToPay"] == 10000
    assert stored["LastPaymentTime"] == "0001-01-01T00:00:00Z"


def test_unknown_package_is_rejected(contract, state):
    with pytest.raises(ContractError, match="package Diamond does not exist"):
        contract.invoke(state, "CreateHealthInsurancePolicy", ["amina", "34", "", "", "Diamond", "0", "0", "0"])


def test_installments_cap_payments(contract, state):
    contract.invoke(state, "CreateLifeInsurancePolicy", ["saif", "10000", "5000000", "2023-01-01", "2024-01-01"])
    contract.min_payment_interval = 0
    contract.invoke(state, "PayPremium", ["1", "10000"])
    with pytest.raises(ContractError, match="maximum number of premium payments"):
        contract.invoke(state, "PayPremium", ["1", "10000"])


def test_non_positive_payment_is_rejected(contract, state):
    contract.invoke(state, "CreateLifeInsurancePolicy", ["saif", "10000", "5000000", "2023-01-01", "2024-01-01"])
    with pytest.raises(ContractError, match="greater than zero"):
        contract.invoke(state, "PayPremium", ["1", "0"])


def test_profit_percentage_must_be_positive(contract, state):
    with pytest.raises(ContractError):
        contract.invoke(state, "UpdateProfitPercentageDefault", ["-1"])
    assert json.loads(contract.invoke(state, "GetProfitPercentageDefault", [])) == 13.0
