"""Typed input and result models shared across the calculation services.

``CalculatorInput`` is the immutable record handed to the calculators. It
deliberately carries no range constraints: the calculators clamp negative
amounts themselves so that every input produces a result. The stricter
``CalculationRequest`` in :mod:`.api` sits in front of it for HTTP callers.
Derived figures are returned as a plain frozen dataclass.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from .api import (
    CalculationRequest,
    CalculationResponse,
    ResponseMeta,
    SearchMeta,
    format_validation_error,
)

__all__ = [
    "CalculationMode",
    "CalculationRequest",
    "CalculationResponse",
    "CalculationResult",
    "CalculatorInput",
    "EmploymentType",
    "FamilyBonusOption",
    "IncomePeriod",
    "ResponseMeta",
    "SearchMeta",
    "format_validation_error",
]

EmploymentType = Literal["employee", "apprentice", "pensioner"]
IncomePeriod = Literal["monthly", "yearly"]
CalculationMode = Literal["gross-to-net", "net-to-gross"]
FamilyBonusOption = Literal["none", "shared", "full"]


class CalculatorInput(BaseModel):
    """Normalised salary calculation input for a single invocation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    employment_type: EmploymentType = "employee"
    income_period: IncomePeriod = "monthly"
    income: float = 0.0
    calculation_mode: CalculationMode = "gross-to-net"
    has_children: bool = False
    children_under_18: int = 0
    children_over_18: int = 0
    is_single_earner: bool = False
    family_bonus: FamilyBonusOption = "none"
    taxable_benefits_monthly: float = 0.0
    company_car_benefit_monthly: float = 0.0
    allowance: float = 0.0
    receives_commuter_allowance: bool = False
    commuter_allowance_monthly: float = 0.0

    @property
    def effective_children_under_18(self) -> int:
        if not self.has_children:
            return 0
        return max(self.children_under_18, 0)

    @property
    def effective_children_over_18(self) -> int:
        if not self.has_children:
            return 0
        return max(self.children_over_18, 0)

    @property
    def total_children(self) -> int:
        return self.effective_children_under_18 + self.effective_children_over_18

    @property
    def effective_commuter_allowance(self) -> float:
        if not self.receives_commuter_allowance:
            return 0.0
        return max(self.commuter_allowance_monthly, 0.0)


@dataclass(frozen=True, slots=True)
class CalculationResult:
    """Full gross-to-net breakdown produced by the forward calculator."""

    gross_monthly: float
    gross_annual: float
    gross_special_payment: float
    taxable_gross_monthly: float
    social_insurance_monthly: float
    social_insurance_special: float
    social_insurance_annual: float
    allowances_monthly: float
    allowances_annual: float
    commuter_allowance_monthly: float
    taxable_income_monthly: float
    taxable_income_annual: float
    income_tax_before_credits_annual: float
    income_tax_monthly: float
    income_tax_regular_annual: float
    income_tax_special_13th: float
    income_tax_special_14th: float
    income_tax_annual: float
    employment_credit_annual: float
    single_earner_credit_annual: float
    credits_annual: float
    credits_monthly: float
    family_bonus_annual: float
    family_bonus_monthly: float
    refund_cap_annual: float
    net_monthly: float
    net_annual: float
    net_regular_monthly: float
    net_regular_annual: float
    net_special_13th: float
    net_special_14th: float

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)
