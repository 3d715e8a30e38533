"""Utilities for validating tax table data and surfacing issues."""

from __future__ import annotations

import argparse
from typing import Sequence

from .tax_config import (
    ConfigurationError,
    ContributionRates,
    PhaseOutAmount,
    SpecialPaymentConfig,
    TaxBracket,
    TaxConfiguration,
    load_tax_configuration,
    resolve_config_path,
)

_EMPLOYMENT_TYPES = ("employee", "apprentice", "pensioner")


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_rate(scope: str, label: str, value: float | None) -> list[str]:
    if value is None or 0 <= value <= 1:
        return []
    return [_format_scope(scope, f"{label} {value} must be between 0 and 1")]


def _validate_contributions(
    rates: dict[str, ContributionRates] | None, fallback_type: str
) -> list[str]:
    errors: list[str] = []
    rates = rates or {}

    for employment_type in _EMPLOYMENT_TYPES:
        if employment_type not in rates:
            errors.append(
                _format_scope(
                    "social_insurance",
                    f"no contribution rates defined for '{employment_type}'",
                )
            )

    if fallback_type not in rates:
        errors.append(
            _format_scope(
                "social_insurance",
                f"fallback type '{fallback_type}' has no contribution rates",
            )
        )

    for employment_type, contribution in rates.items():
        scope = f"social_insurance.{employment_type}"
        errors.extend(_validate_rate(scope, "regular rate", contribution.regular_rate))
        errors.extend(_validate_rate(scope, "special rate", contribution.special_rate))

    return errors


def _validate_brackets(brackets: Sequence[TaxBracket]) -> list[str]:
    errors: list[str] = []
    scope = "income_tax.brackets"

    if not brackets:
        return [_format_scope(scope, "no tax brackets defined")]

    last_upper: float | None = None
    for index, bracket in enumerate(brackets):
        errors.extend(_validate_rate(f"{scope}[{index}]", "rate", bracket.rate))
        upper = bracket.upper_bound
        if upper is None and index != len(brackets) - 1:
            errors.append(
                _format_scope(scope, "only the final bracket may be open-ended")
            )
        if upper is not None and last_upper is not None and upper <= last_upper:
            errors.append(_format_scope(scope, "upper bounds must be ascending"))
        last_upper = upper if upper is not None else last_upper

    if brackets[-1].upper_bound is not None:
        errors.append(_format_scope(scope, "final bracket must have an open upper bound"))

    rates = [bracket.rate for bracket in brackets]
    if rates != sorted(rates):
        errors.append(_format_scope(scope, "marginal rates should not decrease"))

    return errors


def _validate_special_payments(config: SpecialPaymentConfig) -> list[str]:
    scope = "special_payments"
    errors = _validate_rate(scope, "preferential rate", config.preferential_rate)

    for index, bracket in enumerate(config.brackets):
        errors.extend(_validate_rate(f"{scope}.brackets[{index}]", "rate", bracket.rate))
        if bracket.width is None and index != len(config.brackets) - 1:
            errors.append(
                _format_scope(scope, "only the final surcharge bracket may be open-ended")
            )

    if config.brackets and config.brackets[-1].width is not None:
        errors.append(_format_scope(scope, "final surcharge bracket must be open-ended"))

    return errors


def _validate_phase_out(scope: str, phase_out: PhaseOutAmount) -> list[str]:
    errors: list[str] = []
    if phase_out.phase_out_until < phase_out.full_until:
        errors.append(
            _format_scope(scope, "phase-out threshold precedes the full-amount threshold")
        )
    if phase_out.floor > phase_out.amount:
        errors.append(_format_scope(scope, "floor cannot exceed the full amount"))
    return errors


def validate_tax_configuration(config: TaxConfiguration) -> list[str]:
    """Return a list of validation issues for the provided configuration."""

    errors: list[str] = []

    errors.extend(
        _validate_contributions(
            dict(config.social_insurance.rates),
            config.social_insurance.fallback_type,
        )
    )
    errors.extend(_validate_brackets(config.income_tax.brackets))
    errors.extend(_validate_special_payments(config.special_payments))

    traffic = config.traffic_credit
    errors.extend(_validate_phase_out("credits.traffic.increased", traffic.increased))
    errors.extend(_validate_phase_out("credits.traffic.surcharge", traffic.surcharge))
    if traffic.increased.floor != traffic.base_amount:
        errors.append(
            _format_scope(
                "credits.traffic",
                "increased credit must phase out to the base amount",
            )
        )

    for index, tier in enumerate(config.pensioner_credit.tiers):
        errors.extend(_validate_phase_out(f"credits.pensioner.tiers[{index}]", tier))

    for option in ("none", "shared", "full"):
        if option not in config.family_bonus.factors:
            errors.append(
                _format_scope("credits.family_bonus", f"missing factor for '{option}'")
            )
    for option, factor in config.family_bonus.factors.items():
        errors.extend(
            _validate_rate("credits.family_bonus", f"factor '{option}'", factor)
        )

    return errors


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate tax table files and report issues helpful to contributors."
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Tax table files to validate (defaults to the active configuration)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    paths = args.paths or [None]

    exit_code = 0

    for path in paths:
        label = resolve_config_path(path).name
        try:
            config = load_tax_configuration(path)
        except (FileNotFoundError, ConfigurationError) as error:
            print(f"[{label}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_tax_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{label}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{label}] OK ({config.year})")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
