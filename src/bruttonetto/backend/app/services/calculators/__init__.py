"""Domain-specific calculation helpers."""

from .credits import (
    calculate_employment_credit,
    calculate_family_bonus,
    calculate_pensioner_credit,
    calculate_single_earner_credit,
    calculate_traffic_credit,
    resolve_refund_cap,
)
from .social_insurance import (
    SocialInsuranceBreakdown,
    calculate_social_insurance,
    resolve_contribution_rates,
)
from .special_payments import (
    SpecialPaymentState,
    SpecialPaymentTax,
    allocate_special_payment_taxes,
    initial_special_payment_state,
    tax_special_payment,
)
from .utils import (
    calculate_progressive_tax,
    linear_phase_out,
    non_negative,
    round_currency,
)

__all__ = [
    "SocialInsuranceBreakdown",
    "SpecialPaymentState",
    "SpecialPaymentTax",
    "allocate_special_payment_taxes",
    "calculate_employment_credit",
    "calculate_family_bonus",
    "calculate_pensioner_credit",
    "calculate_progressive_tax",
    "calculate_single_earner_credit",
    "calculate_social_insurance",
    "calculate_traffic_credit",
    "initial_special_payment_state",
    "linear_phase_out",
    "non_negative",
    "resolve_contribution_rates",
    "resolve_refund_cap",
    "round_currency",
    "tax_special_payment",
]
