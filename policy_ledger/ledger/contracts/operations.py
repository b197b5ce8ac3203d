"""
Operation catalog for the insurance contract.

Each contract operation has exactly one signature here. Arguments are checked
and encoded to the ordered string list the contract receives before any
session or network call is made; mistakes surface as InvalidArgumentsError.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from ..errors import InvalidArgumentsError
from .interfaces import InvocationMode, OperationInvocation


class ArgType:
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"


@dataclass(frozen=True)
class ArgSpec:
    name: str
    type: str = ArgType.STRING


@dataclass(frozen=True)
class OperationSpec:
    name: str
    mode: InvocationMode
    args: Tuple[ArgSpec, ...] = ()

    def encode(self, values: Iterable[Any]) -> OperationInvocation:
        values = list(values)
        if len(values) != len(self.args):
            raise InvalidArgumentsError(
                f"{self.name} expects {len(self.args)} argument(s) "
                f"({', '.join(a.name for a in self.args) or 'none'}); got {len(values)}"
            )
        encoded = tuple(_encode_value(self.name, spec, value) for spec, value in zip(self.args, values))
        return OperationInvocation(name=self.name, args=encoded, mode=self.mode)


def _encode_value(operation: str, spec: ArgSpec, value: Any) -> str:
    if spec.type == ArgType.STRING:
        if not isinstance(value, str):
            raise InvalidArgumentsError(f"{operation}: '{spec.name}' must be a string; got {type(value).__name__}")
        return value

    # bool is an int subclass; never accept it for numeric parameters
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentsError(f"{operation}: '{spec.name}' must be a {spec.type}; got {type(value).__name__}")

    if spec.type == ArgType.INTEGER:
        if isinstance(value, float):
            if not value.is_integer():
                raise InvalidArgumentsError(f"{operation}: '{spec.name}' must be a whole number; got {value!r}")
            value = int(value)
        return str(value)

    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidArgumentsError(f"{operation}: '{spec.name}' must be finite; got {value!r}")
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


class OperationCatalog:
    def __init__(self, operations: Iterable[OperationSpec]) -> None:
        self._operations: Dict[str, OperationSpec] = {op.name: op for op in operations}

    def __contains__(self, name: str) -> bool:
        return name in self._operations

    def __iter__(self):
        return iter(self._operations.values())

    def get(self, name: str) -> OperationSpec:
        try:
            return self._operations[name]
        except KeyError:
            raise InvalidArgumentsError(f"Unknown contract operation '{name}'") from None

    def encode(self, name: str, args: Iterable[Any], mode: InvocationMode) -> OperationInvocation:
        spec = self.get(name)
        if spec.mode != mode:
            raise InvalidArgumentsError(
                f"{name} is a {spec.mode.value.lower()} operation and cannot be called with {mode.value.lower()}"
            )
        return spec.encode(args)

    def names(self) -> List[str]:
        return sorted(self._operations)


def _op(name: str, mode: InvocationMode, *args: Tuple[str, str]) -> OperationSpec:
    return OperationSpec(name=name, mode=mode, args=tuple(ArgSpec(n, t) for n, t in args))


_S, _I, _N = ArgType.STRING, ArgType.INTEGER, ArgType.NUMBER
_SUBMIT, _EVALUATE = InvocationMode.SUBMIT, InvocationMode.EVALUATE

INSURANCE_OPERATIONS: Tuple[OperationSpec, ...] = (
    _op("InitLedger", _SUBMIT),
    _op(
        "CreateLifeInsurancePolicy", _SUBMIT,
        ("holderName", _S), ("premium", _N), ("coverage", _N), ("effectiveDate", _S), ("expirationDate", _S),
    ),
    _op(
        "CreateHealthInsurancePolicy", _SUBMIT,
        ("holderName", _S), ("age", _I), ("location", _S), ("companyName", _S), ("packageName", _S),
        ("premium", _N), ("installmentNo", _I), ("profitPercentage", _N),
    ),
    _op("ReadPolicy", _EVALUATE, ("id", _I)),
    _op(
        "UpdatePolicy", _SUBMIT,
        ("id", _I), ("holderName", _S), ("policyType", _S), ("premium", _N), ("coverage", _N),
        ("installmentNo", _I), ("totalPremiumToPay", _N),
    ),
    _op("DeletePolicy", _SUBMIT, ("id", _I)),
    _op("GetInstallmentNo", _EVALUATE, ("id", _I)),
    _op("SetInstallmentNo", _SUBMIT, ("id", _I), ("newInstallmentNo", _I)),
    _op("PayPremium", _SUBMIT, ("id", _I), ("amount", _N)),
    _op("ClaimCoverage", _SUBMIT, ("id", _I)),
    _op("Cancel", _SUBMIT, ("id", _I)),
    _op("GetTotalPaid", _EVALUATE, ("id", _I)),
    _op("GetAllPolicies", _EVALUATE),
    _op("GetTotalPoliciesCount", _EVALUATE),
    _op("GetProfitPercentageDefault", _EVALUATE),
    _op("UpdateProfitPercentageDefault", _SUBMIT, ("newProfitPercentage", _N)),
)

INSURANCE_CATALOG = OperationCatalog(INSURANCE_OPERATIONS)


def describe_catalog(catalog: OperationCatalog) -> List[Mapping[str, Any]]:
    """Plain-dict view of a catalog, used by the REST layer's /operations route."""
    return [
        {"name": op.name, "mode": op.mode.value, "args": [{"name": a.name, "type": a.type} for a in op.args]}
        for op in catalog
    ]
