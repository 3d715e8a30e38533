"""Pydantic models describing the public API surface."""

from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from bruttonetto.backend.app.services.formatting import parse_locale_number

__all__ = [
    "CalculationRequest",
    "CalculationResponse",
    "ResponseMeta",
    "SearchMeta",
    "format_validation_error",
]

_AMOUNT_FIELDS = (
    "income",
    "taxable_benefits_monthly",
    "company_car_benefit_monthly",
    "allowance",
    "commuter_allowance_monthly",
)

_FAMILY_BONUS_ALIASES = {"half": "shared"}


class CalculationRequest(BaseModel):
    """Complete payload accepted by the calculation endpoint."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    locale: str | None = None
    employment_type: Literal["employee", "apprentice", "pensioner"] = "employee"
    income_period: Literal["monthly", "yearly"] = "monthly"
    income: float = Field(default=0.0, ge=0)
    calculation_mode: Literal["gross-to-net", "net-to-gross"] = "gross-to-net"
    has_children: bool = False
    children_under_18: int = Field(default=0, ge=0, le=20)
    children_over_18: int = Field(default=0, ge=0, le=20)
    is_single_earner: bool = False
    family_bonus: Literal["none", "shared", "full"] = "none"
    taxable_benefits_monthly: float = Field(default=0.0, ge=0)
    company_car_benefit_monthly: float = Field(default=0.0, ge=0)
    allowance: float = Field(default=0.0, ge=0)
    receives_commuter_allowance: bool = False
    commuter_allowance_monthly: float = Field(default=0.0, ge=0)

    @field_validator(*_AMOUNT_FIELDS, mode="before")
    @classmethod
    def _parse_localised_amount(cls, value: Any) -> Any:
        if value is None:
            return 0.0
        if isinstance(value, str):
            parsed = parse_locale_number(value)
            if math.isnan(parsed):
                raise ValueError("value must be numeric")
            return parsed
        return value

    @field_validator("calculation_mode", mode="before")
    @classmethod
    def _normalise_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("_", "-")
        return value

    @field_validator("family_bonus", mode="before")
    @classmethod
    def _normalise_family_bonus(cls, value: Any) -> Any:
        if value is None:
            return "none"
        if isinstance(value, str):
            normalised = value.strip().lower()
            return _FAMILY_BONUS_ALIASES.get(normalised, normalised)
        return value

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def calculator_fields(self) -> dict[str, Any]:
        """Return the fields understood by the calculators."""

        return self.model_dump(exclude={"locale"})


class SearchMeta(BaseModel):
    """Diagnostics for a net-to-gross search."""

    model_config = ConfigDict(extra="forbid")

    target_net_annual: float
    iterations: int
    converged: bool
    difference: float


class ResponseMeta(BaseModel):
    """Metadata returned alongside the calculation output."""

    model_config = ConfigDict(extra="forbid")

    tax_year: int
    locale: str
    mode: str
    income_period: str
    employment_type: str
    search: SearchMeta | None = None


class CalculationResponse(BaseModel):
    """Full response payload produced by the calculation service."""

    model_config = ConfigDict(extra="forbid")

    result: dict[str, float]
    formatted: dict[str, str]
    meta: ResponseMeta


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if "greater than or equal to 0" in message.lower():
            message = "value cannot be negative"
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid calculation payload: {details}"
