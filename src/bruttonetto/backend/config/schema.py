"""Pydantic models describing the tax table configuration schema."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class TaxBracket(ImmutableModel):
    """Represents a single progressive tax bracket."""

    upper_bound: float | None = Field(default=None, alias="upper")
    rate: float

    @model_validator(mode="after")
    def _validate_values(self) -> TaxBracket:
        if self.rate < 0:
            raise ConfigurationError("Tax rates must be non-negative")
        if self.upper_bound is not None and self.upper_bound <= 0:
            raise ConfigurationError("Upper bounds must be positive values")
        return self


class SpecialPaymentBracket(ImmutableModel):
    """Surcharge bracket for special payments, expressed as a width."""

    width: float | None = None
    rate: float

    @model_validator(mode="after")
    def _validate_values(self) -> SpecialPaymentBracket:
        if self.rate < 0:
            raise ConfigurationError("Special payment rates must be non-negative")
        if self.width is not None and self.width <= 0:
            raise ConfigurationError("Special payment bracket widths must be positive")
        return self


class PayrollConfig(ImmutableModel):
    """Number of salary payments per year."""

    payments_per_year: int = 14
    regular_payments_per_year: int = 12

    @model_validator(mode="after")
    def _validate_payroll(self) -> PayrollConfig:
        if self.regular_payments_per_year <= 0:
            raise ConfigurationError("Regular payments per year must be positive")
        if self.payments_per_year - self.regular_payments_per_year != 2:
            raise ConfigurationError(
                "Payroll must define exactly two special payments (13th and 14th)"
            )
        return self

    @computed_field
    @property
    def special_payments_per_year(self) -> int:
        return self.payments_per_year - self.regular_payments_per_year


class ContributionRates(ImmutableModel):
    """Employee social insurance rates for regular and special payments."""

    regular_rate: float
    special_rate: float | None = None

    @model_validator(mode="after")
    def _validate_rates(self) -> ContributionRates:
        if self.regular_rate < 0:
            raise ConfigurationError("Contribution rates must be non-negative")
        if self.special_rate is not None and self.special_rate < 0:
            raise ConfigurationError("Contribution rates must be non-negative")
        return self

    @property
    def effective_special_rate(self) -> float:
        """Special payment rate, defaulting to the regular rate when unset."""

        if self.special_rate is None:
            return self.regular_rate
        return self.special_rate


class SocialInsuranceConfig(ImmutableModel):
    """Contribution rates keyed by employment type."""

    rates: Mapping[str, ContributionRates]
    fallback_type: str = "employee"

    @model_validator(mode="before")
    @classmethod
    def _wrap_rates(cls, data: Any) -> Mapping[str, Any]:
        if not isinstance(data, Mapping):
            raise ConfigurationError("'social_insurance' section must be a mapping")
        if "rates" in data:
            return data
        prepared = dict(data)
        fallback = prepared.pop("fallback_type", "employee")
        return {"rates": prepared, "fallback_type": fallback}

    @model_validator(mode="after")
    def _validate_fallback(self) -> SocialInsuranceConfig:
        if self.fallback_type not in self.rates:
            raise ConfigurationError(
                f"Fallback employment type '{self.fallback_type}' has no contribution rates"
            )
        return self

    def rates_for(self, employment_type: str) -> ContributionRates:
        rates = self.rates.get(employment_type)
        if rates is None:
            return self.rates[self.fallback_type]
        return rates


class IncomeTaxConfig(ImmutableModel):
    """Progressive income tax scale applied to annual regular income."""

    brackets: Sequence[TaxBracket]


class SpecialPaymentConfig(ImmutableModel):
    """Rules for taxing the 13th and 14th salary."""

    tax_free_allowance: float
    preferential_rate: float
    sixth_divisor: float = 6.0
    brackets: Sequence[SpecialPaymentBracket]

    @model_validator(mode="after")
    def _validate_config(self) -> SpecialPaymentConfig:
        if self.tax_free_allowance < 0:
            raise ConfigurationError("Special payment allowance must be non-negative")
        if self.preferential_rate < 0:
            raise ConfigurationError("Special payment preferential rate must be non-negative")
        if self.sixth_divisor <= 0:
            raise ConfigurationError("Special payment divisor must be positive")
        if not self.brackets:
            raise ConfigurationError("Special payment configuration requires brackets")
        return self


class PhaseOutAmount(ImmutableModel):
    """Amount granted in full up to a threshold, then ramped down to a floor."""

    amount: float
    full_until: float
    phase_out_until: float
    floor: float = 0.0

    @model_validator(mode="after")
    def _validate_amounts(self) -> PhaseOutAmount:
        if self.amount < 0 or self.floor < 0:
            raise ConfigurationError("Credit amounts must be non-negative")
        if self.phase_out_until < self.full_until:
            raise ConfigurationError("'phase_out_until' cannot precede 'full_until'")
        return self


class TrafficCreditConfig(ImmutableModel):
    """Traffic credit (Verkehrsabsetzbetrag) for active employees."""

    base_amount: float
    increased: PhaseOutAmount
    surcharge: PhaseOutAmount
    excluded_types: Sequence[str] = Field(default_factory=lambda: ("pensioner",))

    @field_validator("excluded_types", mode="before")
    @classmethod
    def _coerce_excluded(cls, value: Any) -> Sequence[str]:
        if value is None:
            return ()
        return tuple(str(entry) for entry in value)


class PensionerCreditConfig(ImmutableModel):
    """Pensioner credit tiers evaluated in order; the first applicable wins."""

    tiers: Sequence[PhaseOutAmount]

    @model_validator(mode="after")
    def _validate_tiers(self) -> PensionerCreditConfig:
        if not self.tiers:
            raise ConfigurationError("Pensioner credit requires at least one tier")
        return self


class SingleEarnerCreditConfig(ImmutableModel):
    """Single-earner / single-parent credit by number of children."""

    amounts_by_children: Mapping[int, float]
    incremental_amount_per_child: float = 0.0

    @field_validator("amounts_by_children", mode="before")
    @classmethod
    def _coerce_amounts(cls, value: Any) -> Mapping[int, float]:
        if isinstance(value, Mapping):
            return {int(key): float(val) for key, val in value.items()}
        raise ConfigurationError("'amounts_by_children' must be a mapping")

    @model_validator(mode="after")
    def _validate_values(self) -> SingleEarnerCreditConfig:
        for child_count, amount in self.amounts_by_children.items():
            if child_count <= 0:
                raise ConfigurationError("Child counts must be positive")
            if amount < 0:
                raise ConfigurationError("Tax credit amounts must be non-negative")
        if self.incremental_amount_per_child < 0:
            raise ConfigurationError("Incremental amounts must be non-negative")
        return self

    def amount_for_children(self, children: int) -> float:
        if children <= 0 or not self.amounts_by_children:
            return 0.0
        if children in self.amounts_by_children:
            return self.amounts_by_children[children]
        max_key = max(self.amounts_by_children)
        if children < max_key:
            lower_keys = [key for key in self.amounts_by_children if key <= children]
            if not lower_keys:
                return 0.0
            return self.amounts_by_children[max(lower_keys)]
        extra_children = children - max_key
        return self.amounts_by_children[max_key] + extra_children * self.incremental_amount_per_child


class FamilyBonusConfig(ImmutableModel):
    """Familienbonus Plus amounts per child and sharing factors."""

    annual_under_18: float
    annual_over_18: float
    factors: Mapping[str, float]

    @field_validator("factors", mode="before")
    @classmethod
    def _coerce_factors(cls, value: Any) -> Mapping[str, float]:
        if isinstance(value, Mapping):
            return {str(key): float(val) for key, val in value.items()}
        raise ConfigurationError("Family bonus 'factors' must be a mapping")

    @property
    def monthly_under_18(self) -> float:
        return self.annual_under_18 / 12

    @property
    def monthly_over_18(self) -> float:
        return self.annual_over_18 / 12

    def factor_for(self, option: str) -> float:
        return self.factors.get(option, 0.0)


class RefundCapConfig(ImmutableModel):
    """Ceiling for negative income tax (SV-Rückerstattung)."""

    pensioner: float
    with_commuter_allowance: float
    default: float

    @model_validator(mode="after")
    def _validate_caps(self) -> RefundCapConfig:
        if min(self.pensioner, self.with_commuter_allowance, self.default) < 0:
            raise ConfigurationError("Refund caps must be non-negative")
        return self


class InverseSearchConfig(ImmutableModel):
    """Policy for the net-to-gross binary search."""

    tolerance: float = 0.5
    max_iterations: int = 50
    upper_bound_factor: float = 3.0

    @model_validator(mode="after")
    def _validate_policy(self) -> InverseSearchConfig:
        if self.tolerance <= 0:
            raise ConfigurationError("Search tolerance must be positive")
        if self.max_iterations < 0:
            raise ConfigurationError("Search iterations must be non-negative")
        if self.upper_bound_factor < 1:
            raise ConfigurationError("Search upper bound factor must be at least 1")
        return self


class TaxConfiguration(ImmutableModel):
    """Structured representation of one tax year's constants."""

    year: int
    meta: Mapping[str, Any] = Field(default_factory=dict)
    payroll: PayrollConfig = Field(default_factory=PayrollConfig)
    social_insurance: SocialInsuranceConfig
    income_tax: IncomeTaxConfig
    special_payments: SpecialPaymentConfig
    traffic_credit: TrafficCreditConfig
    pensioner_credit: PensionerCreditConfig
    single_earner_credit: SingleEarnerCreditConfig
    family_bonus: FamilyBonusConfig
    refund_caps: RefundCapConfig
    inverse_search: InverseSearchConfig = Field(default_factory=InverseSearchConfig)

    @model_validator(mode="before")
    @classmethod
    def _flatten_credits(cls, data: Any) -> Mapping[str, Any]:
        if not isinstance(data, Mapping):
            raise ConfigurationError("Configuration file must define a mapping at the top level")

        prepared = dict(data)
        meta = prepared.get("meta")
        if meta is None:
            prepared["meta"] = {}
        elif not isinstance(meta, Mapping):
            raise ConfigurationError("'meta' section must be a mapping if provided")

        credits = prepared.pop("credits", None)
        if credits is None:
            return prepared
        if not isinstance(credits, Mapping):
            raise ConfigurationError("'credits' section must be a mapping")

        section_names = {
            "traffic": "traffic_credit",
            "pensioner": "pensioner_credit",
            "single_earner": "single_earner_credit",
            "family_bonus": "family_bonus",
            "refund_caps": "refund_caps",
        }
        for source, target in section_names.items():
            payload = credits.get(source)
            if not isinstance(payload, Mapping):
                raise ConfigurationError(f"Credit configuration requires a '{source}' section")
            prepared[target] = dict(payload)

        return prepared

    @model_validator(mode="after")
    def _validate_brackets(self) -> Self:
        brackets = self.income_tax.brackets
        if not brackets:
            raise ConfigurationError("At least one tax bracket must be defined")
        last_upper: float | None = None
        for bracket in brackets:
            upper = bracket.upper_bound
            if last_upper is not None and upper is not None and upper <= last_upper:
                raise ConfigurationError("Tax brackets must be in ascending order")
            last_upper = upper if upper is not None else last_upper
        if brackets[-1].upper_bound is not None:
            raise ConfigurationError("Final tax bracket must have an open upper bound")
        if self.special_payments.brackets[-1].width is not None:
            raise ConfigurationError("Final special payment bracket must be open-ended")
        return self


__all__ = [
    "ConfigurationError",
    "ContributionRates",
    "FamilyBonusConfig",
    "ImmutableModel",
    "IncomeTaxConfig",
    "InverseSearchConfig",
    "PayrollConfig",
    "PensionerCreditConfig",
    "PhaseOutAmount",
    "RefundCapConfig",
    "SingleEarnerCreditConfig",
    "SocialInsuranceConfig",
    "SpecialPaymentBracket",
    "SpecialPaymentConfig",
    "TaxBracket",
    "TaxConfiguration",
    "TrafficCreditConfig",
    "ValidationError",
]
