"""Tax credits and allowances granted against annual income tax."""

from __future__ import annotations

from bruttonetto.backend.config.tax_config import (
    FamilyBonusConfig,
    PensionerCreditConfig,
    RefundCapConfig,
    SingleEarnerCreditConfig,
    TrafficCreditConfig,
)

from .utils import phase_out_amount

PENSIONER = "pensioner"


def calculate_traffic_credit(
    employment_type: str, annual_taxable_income: float, config: TrafficCreditConfig
) -> float:
    """Verkehrsabsetzbetrag including the increased amount and the surcharge."""

    if employment_type in config.excluded_types:
        return 0.0

    credit = phase_out_amount(annual_taxable_income, config.increased)
    if credit is None:
        credit = config.base_amount

    surcharge = phase_out_amount(annual_taxable_income, config.surcharge)
    return credit + (surcharge or 0.0)


def calculate_pensioner_credit(
    annual_taxable_income: float, config: PensionerCreditConfig
) -> float:
    """Pensionistenabsetzbetrag; the first tier whose range covers the income wins.

    With the 2026 thresholds the increased tier covers every income below the
    upper threshold, so the normal tier never applies.
    """

    for tier in config.tiers:
        amount = phase_out_amount(annual_taxable_income, tier)
        if amount is not None:
            return amount
    return 0.0


def calculate_employment_credit(
    employment_type: str,
    annual_taxable_income: float,
    traffic: TrafficCreditConfig,
    pensioner: PensionerCreditConfig,
) -> float:
    """Pensioner credit for pensioners, the traffic credit for everyone else."""

    if employment_type == PENSIONER:
        return calculate_pensioner_credit(annual_taxable_income, pensioner)
    return calculate_traffic_credit(employment_type, annual_taxable_income, traffic)


def resolve_refund_cap(
    employment_type: str, receives_commuter_allowance: bool, config: RefundCapConfig
) -> float:
    """Maximum negative income tax for the employment type."""

    if employment_type == PENSIONER:
        return config.pensioner
    if receives_commuter_allowance:
        return config.with_commuter_allowance
    return config.default


def calculate_single_earner_credit(
    is_single_earner: bool, children: int, config: SingleEarnerCreditConfig
) -> float:
    """Alleinverdiener-/Alleinerzieherabsetzbetrag (annual)."""

    if not is_single_earner or children <= 0:
        return 0.0
    return config.amount_for_children(children)


def calculate_family_bonus(
    option: str,
    children_under_18: int,
    children_over_18: int,
    config: FamilyBonusConfig,
) -> float:
    """Familienbonus Plus (annual).

    Children over 18 are assumed to still receive family allowance.
    """

    if children_under_18 + children_over_18 <= 0 or option == "none":
        return 0.0

    monthly = (
        children_under_18 * config.monthly_under_18
        + children_over_18 * config.monthly_over_18
    )
    return monthly * config.factor_for(option) * 12


__all__ = [
    "calculate_employment_credit",
    "calculate_family_bonus",
    "calculate_pensioner_credit",
    "calculate_single_earner_credit",
    "calculate_traffic_credit",
    "resolve_refund_cap",
]
