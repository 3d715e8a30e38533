"""Taxation of the 13th and 14th salary (sonstige Bezüge).

Both special payments draw on shared allowances: a tax-free amount, a pool
taxed at the preferential flat rate (capped by the one-sixth rule) and the
surcharge brackets above it. The 13th salary is processed first and whatever
capacity it consumes is no longer available to the 14th. The remaining
capacities travel between the two steps as an immutable
:class:`SpecialPaymentState`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from bruttonetto.backend.config.tax_config import SpecialPaymentConfig

from .utils import non_negative


@dataclass(frozen=True, slots=True)
class SpecialPaymentState:
    """Capacity still available to subsequent special payments."""

    tax_free_remaining: float
    preferential_remaining: float
    bracket_capacities: tuple[float | None, ...]


@dataclass(frozen=True, slots=True)
class SpecialPaymentTax:
    """Tax owed on one special payment and how it was allocated."""

    taxable_base: float
    tax_free: float
    preferential: float
    surcharge: float
    tax: float


def initial_special_payment_state(
    taxable_base_per_payment: float,
    payments: int,
    annual_taxable_income: float,
    config: SpecialPaymentConfig,
) -> SpecialPaymentState:
    """Compute the shared pools once for all special payments of the year."""

    total_base = non_negative(taxable_base_per_payment) * payments
    tax_free = min(config.tax_free_allowance, total_base)
    sixth_limit = non_negative(annual_taxable_income) / config.sixth_divisor
    preferential = min(non_negative(total_base - tax_free), sixth_limit)

    return SpecialPaymentState(
        tax_free_remaining=tax_free,
        preferential_remaining=preferential,
        bracket_capacities=tuple(bracket.width for bracket in config.brackets),
    )


def tax_special_payment(
    taxable_base: float, state: SpecialPaymentState, config: SpecialPaymentConfig
) -> tuple[SpecialPaymentTax, SpecialPaymentState]:
    """Tax one special payment and return the capacities left afterwards."""

    remaining = non_negative(taxable_base)

    tax_free = min(remaining, state.tax_free_remaining)
    remaining -= tax_free

    preferential = min(remaining, state.preferential_remaining)
    remaining -= preferential
    tax = preferential * config.preferential_rate

    surcharge_tax = 0.0
    capacities: list[float | None] = []
    for bracket, capacity in zip(config.brackets, state.bracket_capacities):
        if capacity is None:
            portion = remaining
        else:
            portion = min(remaining, capacity)
            capacity -= portion
        surcharge_tax += portion * bracket.rate
        remaining -= portion
        capacities.append(capacity)

    tax += surcharge_tax

    next_state = replace(
        state,
        tax_free_remaining=state.tax_free_remaining - tax_free,
        preferential_remaining=state.preferential_remaining - preferential,
        bracket_capacities=tuple(capacities),
    )
    allocation = SpecialPaymentTax(
        taxable_base=non_negative(taxable_base),
        tax_free=tax_free,
        preferential=preferential,
        surcharge=surcharge_tax,
        tax=tax,
    )
    return allocation, next_state


def allocate_special_payment_taxes(
    special_gross: float,
    special_social_insurance: float,
    annual_taxable_income: float,
    config: SpecialPaymentConfig,
    payments: int = 2,
) -> list[SpecialPaymentTax]:
    """Tax each special payment in order, carrying depleted capacity forward."""

    taxable_base = non_negative(special_gross - special_social_insurance)
    state = initial_special_payment_state(
        taxable_base, payments, annual_taxable_income, config
    )

    allocations: list[SpecialPaymentTax] = []
    for _ in range(payments):
        allocation, state = tax_special_payment(taxable_base, state, config)
        allocations.append(allocation)
    return allocations


__all__ = [
    "SpecialPaymentState",
    "SpecialPaymentTax",
    "allocate_special_payment_taxes",
    "initial_special_payment_state",
    "tax_special_payment",
]
