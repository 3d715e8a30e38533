"""Employee social insurance (Sozialversicherung) contributions."""

from __future__ import annotations

from dataclasses import dataclass

from bruttonetto.backend.config.tax_config import ContributionRates, SocialInsuranceConfig


@dataclass(frozen=True, slots=True)
class SocialInsuranceBreakdown:
    """Contributions on one regular month and on one special payment."""

    regular_rate: float
    special_rate: float
    monthly: float
    special: float


def resolve_contribution_rates(
    employment_type: str, config: SocialInsuranceConfig
) -> ContributionRates:
    """Return the rates for ``employment_type``; unknown types use the fallback."""

    return config.rates_for(employment_type)


def calculate_social_insurance(
    employment_type: str,
    taxable_gross_monthly: float,
    special_gross: float,
    config: SocialInsuranceConfig,
) -> SocialInsuranceBreakdown:
    """Apply the regular and special payment rates.

    Non-cash benefits are part of ``taxable_gross_monthly`` but never of the
    special payment base, which is the plain monthly gross.
    """

    rates = resolve_contribution_rates(employment_type, config)
    special_rate = rates.effective_special_rate
    return SocialInsuranceBreakdown(
        regular_rate=rates.regular_rate,
        special_rate=special_rate,
        monthly=taxable_gross_monthly * rates.regular_rate,
        special=special_gross * special_rate,
    )


__all__ = [
    "SocialInsuranceBreakdown",
    "calculate_social_insurance",
    "resolve_contribution_rates",
]
