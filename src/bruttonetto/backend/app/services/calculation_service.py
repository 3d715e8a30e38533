"""Orchestrate request validation, the salary calculators and response shaping.

The forward calculator (:func:`calculate_net_salary`) turns a gross income into
a full breakdown of social insurance, income tax and net pay, including the
13th and 14th salary. :func:`calculate_gross_from_net` inverts it with a
bounded binary search. Both are pure functions of their input and the tax
table; :func:`calculate_salary_response` wraps them for the HTTP layer with
validation, rounding, formatting and optional profiling.
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from time import perf_counter
from typing import Any

from pydantic import ValidationError

from bruttonetto.backend.app.models import (
    CalculationRequest,
    CalculationResponse,
    CalculationResult,
    CalculatorInput,
    format_validation_error,
)
from bruttonetto.backend.config.tax_config import TaxConfiguration, load_tax_configuration

from .calculators import (
    allocate_special_payment_taxes,
    calculate_employment_credit,
    calculate_family_bonus,
    calculate_progressive_tax,
    calculate_single_earner_credit,
    calculate_social_insurance,
    non_negative,
    resolve_refund_cap,
    round_currency,
)
from .formatting import DEFAULT_LOCALE, format_currency

_LOGGER = logging.getLogger(__name__)

GROSS_TO_NET = "gross-to-net"
NET_TO_GROSS = "net-to-gross"

FORMATTED_FIELDS = (
    "gross_monthly",
    "gross_annual",
    "social_insurance_monthly",
    "income_tax_monthly",
    "income_tax_annual",
    "family_bonus_monthly",
    "net_monthly",
    "net_annual",
    "net_regular_monthly",
    "net_special_13th",
    "net_special_14th",
)


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("BRUTTONETTO_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def _regular_income_tax(
    tax_before_credits: float,
    deductions: float,
    taxable_income_annual: float,
    refund_cap: float,
) -> float:
    """Apply credits, allowing a refund no larger than ``refund_cap``."""

    if taxable_income_annual <= 0:
        return 0.0

    tax = tax_before_credits - deductions
    if tax < 0:
        return max(tax, -refund_cap)
    return tax


def calculate_net_salary(
    payload: CalculatorInput, config: TaxConfiguration | None = None
) -> CalculationResult:
    """Compute the gross-to-net breakdown for ``payload``.

    ``payload.income`` is always read as gross income here, whatever
    ``calculation_mode`` says. Negative amounts are treated as zero.
    """

    config = config or load_tax_configuration()
    payroll = config.payroll
    payments = payroll.payments_per_year
    regular_payments = payroll.regular_payments_per_year
    employment_type = payload.employment_type

    income = non_negative(payload.income)
    gross_monthly = income if payload.income_period == "monthly" else income / payments

    benefits = non_negative(payload.taxable_benefits_monthly) + non_negative(
        payload.company_car_benefit_monthly
    )
    taxable_gross_monthly = gross_monthly + benefits

    commuter_allowance = payload.effective_commuter_allowance
    allowances_monthly = non_negative(payload.allowance) + commuter_allowance

    social = calculate_social_insurance(
        employment_type, taxable_gross_monthly, gross_monthly, config.social_insurance
    )

    taxable_income_monthly = non_negative(
        taxable_gross_monthly - social.monthly - allowances_monthly
    )
    taxable_income_annual = taxable_income_monthly * regular_payments

    tax_before_credits = calculate_progressive_tax(
        taxable_income_annual, config.income_tax.brackets
    )

    employment_credit = calculate_employment_credit(
        employment_type,
        taxable_income_annual,
        config.traffic_credit,
        config.pensioner_credit,
    )
    single_earner_credit = calculate_single_earner_credit(
        payload.is_single_earner, payload.total_children, config.single_earner_credit
    )
    family_bonus_annual = calculate_family_bonus(
        payload.family_bonus,
        payload.effective_children_under_18,
        payload.effective_children_over_18,
        config.family_bonus,
    )
    refund_cap = resolve_refund_cap(
        employment_type, payload.receives_commuter_allowance, config.refund_caps
    )

    credits_annual = employment_credit + single_earner_credit
    regular_tax_annual = _regular_income_tax(
        tax_before_credits,
        credits_annual + family_bonus_annual,
        taxable_income_annual,
        refund_cap,
    )

    special_13th, special_14th = allocate_special_payment_taxes(
        gross_monthly,
        social.special,
        taxable_income_annual,
        config.special_payments,
        payroll.special_payments_per_year,
    )

    net_regular_monthly = non_negative(
        gross_monthly - social.monthly - regular_tax_annual / regular_payments
    )
    net_regular_annual = net_regular_monthly * regular_payments
    net_special_13th = non_negative(gross_monthly - social.special - special_13th.tax)
    net_special_14th = non_negative(gross_monthly - social.special - special_14th.tax)
    net_annual = net_regular_annual + net_special_13th + net_special_14th

    return CalculationResult(
        gross_monthly=gross_monthly,
        gross_annual=gross_monthly * payments,
        gross_special_payment=gross_monthly,
        taxable_gross_monthly=taxable_gross_monthly,
        social_insurance_monthly=social.monthly,
        social_insurance_special=social.special,
        social_insurance_annual=social.monthly * regular_payments
        + social.special * payroll.special_payments_per_year,
        allowances_monthly=allowances_monthly,
        allowances_annual=allowances_monthly * regular_payments,
        commuter_allowance_monthly=commuter_allowance,
        taxable_income_monthly=taxable_income_monthly,
        taxable_income_annual=taxable_income_annual,
        income_tax_before_credits_annual=tax_before_credits,
        income_tax_monthly=regular_tax_annual / regular_payments,
        income_tax_regular_annual=regular_tax_annual,
        income_tax_special_13th=special_13th.tax,
        income_tax_special_14th=special_14th.tax,
        income_tax_annual=regular_tax_annual + special_13th.tax + special_14th.tax,
        employment_credit_annual=employment_credit,
        single_earner_credit_annual=single_earner_credit,
        credits_annual=credits_annual,
        credits_monthly=credits_annual / regular_payments,
        family_bonus_annual=family_bonus_annual,
        family_bonus_monthly=family_bonus_annual / regular_payments,
        refund_cap_annual=refund_cap,
        net_monthly=net_annual / regular_payments,
        net_annual=net_annual,
        net_regular_monthly=net_regular_monthly,
        net_regular_annual=net_regular_annual,
        net_special_13th=net_special_13th,
        net_special_14th=net_special_14th,
    )


@dataclass(frozen=True, slots=True)
class GrossSearchOutcome:
    """Best forward result found for a target net income."""

    result: CalculationResult
    target_net_annual: float
    iterations: int
    converged: bool
    difference: float


def search_gross_for_net(
    payload: CalculatorInput,
    config: TaxConfiguration | None = None,
    *,
    tolerance: float | None = None,
    max_iterations: int | None = None,
) -> GrossSearchOutcome:
    """Binary-search the gross income whose annual net matches ``payload.income``.

    The target is read in ``payload.income_period`` units: a monthly target
    is the average monthly net including the 13th and 14th salary. The search
    assumes net pay grows with gross pay; around the refund cap and the
    pensioner credit cut-off that is not strictly true and the closest
    candidate seen is returned instead.

    Gross candidates start at the target net, so a net that exceeds its gross
    cannot be reached. This happens at low incomes where the refunded credit
    outweighs the contributions, for example a pensioner at 500 a month. Such
    searches end with ``converged=False``.
    """

    config = config or load_tax_configuration()
    policy = config.inverse_search
    tolerance = policy.tolerance if tolerance is None else tolerance
    max_iterations = policy.max_iterations if max_iterations is None else max_iterations

    payments = config.payroll.payments_per_year
    regular_payments = config.payroll.regular_payments_per_year
    monthly = payload.income_period == "monthly"

    target = non_negative(payload.income)
    target_net_annual = target * regular_payments if monthly else target

    def _evaluate(gross_annual: float) -> CalculationResult:
        income = gross_annual / payments if monthly else gross_annual
        trial = payload.model_copy(
            update={"income": income, "calculation_mode": GROSS_TO_NET}
        )
        return calculate_net_salary(trial, config)

    low = target_net_annual
    high = target_net_annual * policy.upper_bound_factor

    best: CalculationResult | None = None
    best_difference = math.inf
    iterations = 0

    while iterations < max_iterations and low < high:
        iterations += 1
        mid = (low + high) / 2
        result = _evaluate(mid)
        difference = abs(result.net_annual - target_net_annual)

        if difference < best_difference:
            best = result
            best_difference = difference

        if difference < tolerance:
            break

        if result.net_annual < target_net_annual:
            low = mid
        else:
            high = mid

    if best is None:
        best = _evaluate(low)
        best_difference = abs(best.net_annual - target_net_annual)

    converged = best_difference < tolerance
    if converged:
        _LOGGER.debug(
            "Net-to-gross search converged after %d iteration(s): gross %.2f, diff %.4f",
            iterations,
            best.gross_annual,
            best_difference,
        )
    else:
        _LOGGER.warning(
            "Net-to-gross search for %.2f stopped after %d iteration(s); closest diff %.2f",
            target_net_annual,
            iterations,
            best_difference,
        )

    return GrossSearchOutcome(
        result=best,
        target_net_annual=target_net_annual,
        iterations=iterations,
        converged=converged,
        difference=best_difference,
    )


def calculate_gross_from_net(
    payload: CalculatorInput, config: TaxConfiguration | None = None
) -> CalculationResult:
    """Return the breakdown for the gross income yielding the target net."""

    return search_gross_for_net(payload, config).result


def calculate_salary(
    payload: CalculatorInput, config: TaxConfiguration | None = None
) -> CalculationResult:
    """Dispatch on ``payload.calculation_mode``."""

    if payload.calculation_mode == NET_TO_GROSS:
        return calculate_gross_from_net(payload, config)
    return calculate_net_salary(payload, config)


def _validate_request(payload: Mapping[str, Any] | CalculationRequest) -> CalculationRequest:
    if isinstance(payload, CalculationRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise ValueError("Payload must be a mapping")
    try:
        return CalculationRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc)) from exc


def build_calculator_input(payload: Mapping[str, Any] | CalculationRequest) -> CalculatorInput:
    """Validate an API payload and convert it into calculator input."""

    request_model = _validate_request(payload)
    return CalculatorInput.model_validate(request_model.calculator_fields())


def calculate_salary_response(
    payload: Mapping[str, Any] | CalculationRequest,
    config: TaxConfiguration | None = None,
) -> dict[str, Any]:
    """Validate ``payload``, run the calculation and build the API response."""

    request_model = _validate_request(payload)

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None

    config = config or load_tax_configuration()
    locale = request_model.locale or DEFAULT_LOCALE

    with _profile_section("normalise_payload", timings):
        calculator_input = CalculatorInput.model_validate(request_model.calculator_fields())

    search_meta: dict[str, Any] | None = None
    with _profile_section("calculate", timings):
        if calculator_input.calculation_mode == NET_TO_GROSS:
            outcome = search_gross_for_net(calculator_input, config)
            result = outcome.result
            search_meta = {
                "target_net_annual": round_currency(outcome.target_net_annual),
                "iterations": outcome.iterations,
                "converged": outcome.converged,
                "difference": round_currency(outcome.difference),
            }
        else:
            result = calculate_net_salary(calculator_input, config)

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "calculate_salary_response timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    values = result.as_dict()
    response_model = CalculationResponse.model_validate(
        {
            "result": {key: round_currency(value) for key, value in values.items()},
            "formatted": {
                key: format_currency(values[key], locale) for key in FORMATTED_FIELDS
            },
            "meta": {
                "tax_year": config.year,
                "locale": locale,
                "mode": calculator_input.calculation_mode,
                "income_period": calculator_input.income_period,
                "employment_type": calculator_input.employment_type,
                "search": search_meta,
            },
        }
    )

    return response_model.model_dump(mode="json", exclude_none=True)


__all__ = [
    "GROSS_TO_NET",
    "GrossSearchOutcome",
    "NET_TO_GROSS",
    "build_calculator_input",
    "calculate_gross_from_net",
    "calculate_net_salary",
    "calculate_salary",
    "calculate_salary_response",
    "search_gross_for_net",
]
