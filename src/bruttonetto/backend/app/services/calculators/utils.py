"""Utility helpers for calculator modules."""

from __future__ import annotations

from collections.abc import Sequence

from bruttonetto.backend.config.tax_config import PhaseOutAmount, TaxBracket


def calculate_progressive_tax(amount: float, brackets: Sequence[TaxBracket]) -> float:
    """Calculate progressive tax for ``amount`` using ``brackets``."""

    if amount <= 0:
        return 0.0

    total = 0.0
    lower_bound = 0.0

    for bracket in brackets:
        upper = bracket.upper_bound
        if upper is None or amount < upper:
            total += (amount - lower_bound) * bracket.rate
            break

        total += (upper - lower_bound) * bracket.rate
        lower_bound = upper

    return total


def linear_phase_out(
    value: float, high: float, low: float, lower_bound: float, upper_bound: float
) -> float:
    """Interpolate from ``high`` at ``lower_bound`` down to ``low`` at ``upper_bound``."""

    width = upper_bound - lower_bound
    if width <= 0:
        return low
    return high - (high - low) * (value - lower_bound) / width


def phase_out_amount(value: float, phase_out: PhaseOutAmount) -> float | None:
    """Return the phased amount for ``value``, or ``None`` beyond the range."""

    if value <= phase_out.full_until:
        return phase_out.amount
    if value < phase_out.phase_out_until:
        return linear_phase_out(
            value,
            phase_out.amount,
            phase_out.floor,
            phase_out.full_until,
            phase_out.phase_out_until,
        )
    return None


def non_negative(value: float) -> float:
    """Clamp ``value`` to zero from below."""

    return value if value > 0 else 0.0


def round_currency(value: float) -> float:
    """Round monetary amounts to two decimals."""

    return round(value, 2)

