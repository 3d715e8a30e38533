"""Unit tests for the calculation service."""
from __future__ import annotations

import logging

import pytest

from bruttonetto.backend.app.models import CalculationRequest, CalculatorInput
from bruttonetto.backend.app.services.calculation_service import (
    build_calculator_input,
    calculate_gross_from_net,
    calculate_net_salary,
    calculate_salary,
    calculate_salary_response,
    search_gross_for_net,
)

SERVICE_LOGGER = "bruttonetto.backend.app.services.calculation_service"

SAMPLE_INPUTS = [
    CalculatorInput(income=3000),
    CalculatorInput(income=1000),
    CalculatorInput(income=9800, employment_type="apprentice"),
    CalculatorInput(income=64000, income_period="yearly"),
    CalculatorInput(income=2100, employment_type="pensioner"),
    CalculatorInput(
        income=4200,
        has_children=True,
        children_under_18=1,
        children_over_18=1,
        is_single_earner=True,
        family_bonus="shared",
        taxable_benefits_monthly=120,
        company_car_benefit_monthly=250,
        allowance=80,
        receives_commuter_allowance=True,
        commuter_allowance_monthly=112,
    ),
]


@pytest.mark.parametrize("payload", SAMPLE_INPUTS)
def test_result_invariants_hold(payload: CalculatorInput) -> None:
    result = calculate_net_salary(payload)

    assert result.gross_annual == pytest.approx(result.gross_monthly * 14)
    assert result.net_annual == pytest.approx(
        result.net_regular_annual + result.net_special_13th + result.net_special_14th
    )
    assert result.net_monthly == pytest.approx(result.net_annual / 12)
    assert result.net_regular_annual == pytest.approx(result.net_regular_monthly * 12)
    assert result.income_tax_annual == pytest.approx(
        result.income_tax_regular_annual
        + result.income_tax_special_13th
        + result.income_tax_special_14th
    )
    assert result.income_tax_monthly == pytest.approx(result.income_tax_regular_annual / 12)
    assert result.social_insurance_annual == pytest.approx(
        result.social_insurance_monthly * 12 + result.social_insurance_special * 2
    )
    assert result.credits_monthly == pytest.approx(result.credits_annual / 12)
    assert result.income_tax_regular_annual >= -result.refund_cap_annual


def test_zero_income_produces_zero_amounts() -> None:
    result = calculate_net_salary(CalculatorInput())

    for field in (
        "gross_monthly",
        "gross_annual",
        "social_insurance_monthly",
        "social_insurance_special",
        "social_insurance_annual",
        "taxable_income_annual",
        "income_tax_monthly",
        "income_tax_regular_annual",
        "income_tax_special_13th",
        "income_tax_special_14th",
        "income_tax_annual",
        "net_monthly",
        "net_annual",
        "net_regular_monthly",
        "net_special_13th",
        "net_special_14th",
    ):
        assert getattr(result, field) == 0, field


def test_negative_amounts_are_clamped() -> None:
    result = calculate_net_salary(
        CalculatorInput(income=-2500, allowance=-50, company_car_benefit_monthly=-10)
    )

    assert result.gross_monthly == 0
    assert result.net_annual == 0
    assert result.allowances_monthly == 0


def test_no_refund_without_taxable_income() -> None:
    result = calculate_net_salary(CalculatorInput(income=1000, allowance=5000))

    assert result.taxable_income_annual == 0
    assert result.income_tax_regular_annual == 0


def test_net_income_is_monotonic_in_gross() -> None:
    previous = -1.0
    for gross in range(0, 12_001, 150):
        result = calculate_net_salary(CalculatorInput(income=gross))
        assert result.net_annual >= previous - 1e-9, gross
        previous = result.net_annual


def test_apprentice_keeps_more_than_employee() -> None:
    employee = calculate_net_salary(CalculatorInput(income=2500))
    apprentice = calculate_net_salary(CalculatorInput(income=2500, employment_type="apprentice"))

    assert apprentice.social_insurance_monthly < employee.social_insurance_monthly
    assert apprentice.net_annual > employee.net_annual


def test_pensioner_social_insurance_rate() -> None:
    result = calculate_net_salary(CalculatorInput(income=2200, employment_type="pensioner"))

    assert result.social_insurance_monthly == pytest.approx(result.taxable_gross_monthly * 0.051)
    assert result.employment_credit_annual > 0


def test_family_bonus_full_for_two_children() -> None:
    result = calculate_net_salary(
        CalculatorInput(
            income=4000, has_children=True, children_under_18=2, family_bonus="full"
        )
    )

    assert result.family_bonus_annual == pytest.approx(4000.32, abs=0.5)
    assert result.family_bonus_monthly == pytest.approx(333.36, abs=0.05)


def test_children_are_ignored_without_has_children() -> None:
    result = calculate_net_salary(
        CalculatorInput(
            income=4000,
            has_children=False,
            children_under_18=2,
            is_single_earner=True,
            family_bonus="full",
        )
    )

    assert result.family_bonus_annual == 0
    assert result.single_earner_credit_annual == 0


def test_single_earner_credit_increases_net() -> None:
    base = dict(income=3000, has_children=True, children_under_18=1)
    without = calculate_net_salary(CalculatorInput(**base))
    with_credit = calculate_net_salary(CalculatorInput(**base, is_single_earner=True))

    assert with_credit.credits_annual > without.credits_annual
    assert with_credit.net_annual > without.net_annual
    assert with_credit.single_earner_credit_annual == pytest.approx(601)


def test_commuter_allowance_requires_flag() -> None:
    ignored = calculate_net_salary(CalculatorInput(income=3000, commuter_allowance_monthly=200))
    applied = calculate_net_salary(
        CalculatorInput(
            income=3000, receives_commuter_allowance=True, commuter_allowance_monthly=200
        )
    )

    assert ignored.commuter_allowance_monthly == 0
    assert applied.commuter_allowance_monthly == 200
    assert applied.taxable_income_annual == pytest.approx(ignored.taxable_income_annual - 2400)
    assert applied.net_annual > ignored.net_annual


def test_benefits_raise_tax_without_paying_out() -> None:
    plain = calculate_net_salary(CalculatorInput(income=3000))
    with_car = calculate_net_salary(CalculatorInput(income=3000, company_car_benefit_monthly=400))

    assert with_car.gross_monthly == plain.gross_monthly
    assert with_car.taxable_gross_monthly == pytest.approx(3400)
    assert with_car.net_annual < plain.net_annual


@pytest.mark.parametrize("gross", [3000, 5400])
def test_thirteenth_salary_taxed_less_than_fourteenth(gross: float) -> None:
    result = calculate_net_salary(CalculatorInput(income=gross))

    assert result.income_tax_special_13th < result.income_tax_special_14th
    assert result.net_special_13th > result.net_special_14th


def test_moderate_monthly_salary() -> None:
    result = calculate_net_salary(CalculatorInput(income=3000))

    assert 0 < result.net_monthly < 3000
    assert result.social_insurance_monthly > 0
    assert result.income_tax_monthly > 0


def test_regular_net_for_5400_stays_in_acceptance_band() -> None:
    result = calculate_net_salary(CalculatorInput(income=5400))

    assert 3390 <= result.net_regular_monthly <= 3420


def test_yearly_income_is_spread_over_fourteen_payments() -> None:
    result = calculate_net_salary(CalculatorInput(income=120_000, income_period="yearly"))

    assert result.gross_annual == pytest.approx(120_000)
    assert result.gross_monthly == pytest.approx(120_000 / 14)
    assert result.net_annual > 60_000


def test_low_income_refund_is_capped() -> None:
    default = calculate_net_salary(CalculatorInput(income=1000))
    commuter = calculate_net_salary(
        CalculatorInput(income=1000, receives_commuter_allowance=True)
    )

    assert default.income_tax_regular_annual == pytest.approx(-496)
    assert commuter.income_tax_regular_annual == pytest.approx(-750)


@pytest.mark.parametrize("gross", [1800, 3500, 7200])
def test_net_to_gross_round_trip_monthly(gross: float) -> None:
    forward = calculate_net_salary(CalculatorInput(income=gross))

    recovered = calculate_gross_from_net(
        CalculatorInput(income=forward.net_monthly, calculation_mode="net-to-gross")
    )

    assert recovered.gross_monthly == pytest.approx(gross, abs=1.0)
    assert recovered.net_annual == pytest.approx(forward.net_annual, abs=0.5)


def test_net_to_gross_round_trip_yearly() -> None:
    forward = calculate_net_salary(CalculatorInput(income=50_000, income_period="yearly"))

    outcome = search_gross_for_net(
        CalculatorInput(
            income=forward.net_annual,
            income_period="yearly",
            calculation_mode="net-to-gross",
        )
    )

    assert outcome.converged
    assert outcome.iterations <= 50
    assert outcome.result.gross_annual == pytest.approx(50_000, abs=1.0)


def test_net_to_gross_cannot_reach_net_above_gross() -> None:
    forward = calculate_net_salary(CalculatorInput(income=500, employment_type="pensioner"))
    assert forward.net_annual > forward.gross_annual

    outcome = search_gross_for_net(
        CalculatorInput(
            income=forward.net_monthly,
            employment_type="pensioner",
            calculation_mode="net-to-gross",
        )
    )

    assert not outcome.converged
    assert outcome.result.gross_monthly > 500
    assert outcome.result.gross_annual >= outcome.target_net_annual


def test_net_to_gross_zero_target_falls_back_to_forward() -> None:
    outcome = search_gross_for_net(CalculatorInput(calculation_mode="net-to-gross"))

    assert outcome.iterations == 0
    assert outcome.converged
    assert outcome.result.gross_annual == 0


def test_net_to_gross_without_iterations_uses_target_as_gross() -> None:
    outcome = search_gross_for_net(CalculatorInput(income=2000), max_iterations=0)

    assert outcome.iterations == 0
    assert outcome.result.gross_annual == pytest.approx(24_000)
    assert not outcome.converged


def test_net_to_gross_logs_when_not_converged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger=SERVICE_LOGGER):
        outcome = search_gross_for_net(CalculatorInput(income=2000), max_iterations=1)

    assert not outcome.converged
    assert outcome.iterations == 1
    assert any("Net-to-gross search" in record.message for record in caplog.records)


def test_calculate_salary_dispatches_on_mode() -> None:
    forward = calculate_salary(CalculatorInput(income=2500))
    inverse = calculate_salary(CalculatorInput(income=2500, calculation_mode="net-to-gross"))

    assert forward.gross_monthly == pytest.approx(2500)
    assert inverse.net_monthly == pytest.approx(2500, abs=0.5 / 12)
    assert inverse.gross_monthly > 2500


def test_build_calculator_input_normalises_request() -> None:
    calculator_input = build_calculator_input(
        {
            "income": "2.750,50",
            "calculation_mode": "NET_TO_GROSS",
            "family_bonus": "half",
            "locale": "en-GB",
        }
    )

    assert calculator_input.income == pytest.approx(2750.5)
    assert calculator_input.calculation_mode == "net-to-gross"
    assert calculator_input.family_bonus == "shared"


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"income": -1}, "value cannot be negative"),
        ({"income": "abc"}, "value must be numeric"),
        ({"income": 1000, "year": 2024}, "year"),
        ({"employment_type": "freelancer"}, "employment_type"),
        ({"children_under_18": 25}, "children_under_18"),
    ],
)
def test_invalid_requests_raise_value_error(payload: dict, message: str) -> None:
    with pytest.raises(ValueError) as excinfo:
        calculate_salary_response(payload)

    assert message in str(excinfo.value)
    assert str(excinfo.value).startswith("Invalid calculation payload")


def test_response_rounds_and_formats_results() -> None:
    response = calculate_salary_response({"income": 5400, "locale": "de-AT"})

    assert response["result"]["social_insurance_monthly"] == 975.78
    assert response["result"]["net_regular_monthly"] == 3408.6
    assert response["formatted"]["gross_monthly"] == "€ 5.400,00"
    assert response["formatted"]["net_regular_monthly"] == "€ 3.408,60"
    assert response["meta"] == {
        "tax_year": 2026,
        "locale": "de-AT",
        "mode": "gross-to-net",
        "income_period": "monthly",
        "employment_type": "employee",
    }


def test_response_includes_search_metadata_for_net_to_gross() -> None:
    response = calculate_salary_response(
        CalculationRequest(income=2500, calculation_mode="net-to-gross", locale="en-US")
    )

    search = response["meta"]["search"]
    assert search["converged"] is True
    assert search["target_net_annual"] == pytest.approx(30_000)
    assert 0 < search["iterations"] <= 50
    assert response["formatted"]["net_monthly"].startswith("€2,")


def test_response_profiling_logs_timings(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("BRUTTONETTO_PROFILE_CALCULATIONS", "1")

    with caplog.at_level(logging.DEBUG, logger=SERVICE_LOGGER):
        calculate_salary_response({"income": 3000})

    assert any("timings" in record.message for record in caplog.records)


def test_non_mapping_payload_is_rejected() -> None:
    with pytest.raises(ValueError):
        calculate_salary_response(["income", 3000])  # type: ignore[arg-type]
