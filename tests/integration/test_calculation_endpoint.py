"""Integration tests for the salary calculation REST endpoint."""

from __future__ import annotations

import json
from http import HTTPStatus
from pathlib import Path
from typing import Dict, Iterable

import pytest
from flask.testing import FlaskClient

DATA_PATH = Path(__file__).resolve().parents[1] / "data" / "regression_scenarios.json"


def _load_scenarios() -> Iterable[Dict[str, object]]:
    with DATA_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


@pytest.mark.parametrize("scenario", _load_scenarios(), ids=lambda item: item["name"])
def test_calculation_endpoint_matches_regression_scenarios(
    client: FlaskClient, scenario: Dict[str, object]
) -> None:
    """Each regression scenario should remain stable over time."""

    response = client.post("/api/v1/calculations", json=scenario["payload"])
    assert response.status_code == HTTPStatus.OK

    result = response.get_json()["result"]
    for key, value in scenario["expectations"].items():
        assert result[key] == pytest.approx(value, abs=0.02), key


def test_calculation_endpoint_uses_accept_language_header(client: FlaskClient) -> None:
    """Accept-Language header should influence locale if body omits it."""

    response = client.post(
        "/api/v1/calculations",
        json={"income": 3000},
        headers={"Accept-Language": "en-US"},
    )

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["meta"]["locale"] == "en-US"
    assert payload["formatted"]["gross_monthly"] == "€3,000.00"


def test_calculation_endpoint_defaults_to_austrian_formatting(client: FlaskClient) -> None:
    response = client.post("/api/v1/calculations", json={"income": 3000})

    payload = response.get_json()
    assert payload["meta"]["locale"] == "de-AT"
    assert payload["formatted"]["gross_annual"] == "€ 42.000,00"


def test_calculation_endpoint_supports_net_to_gross(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations",
        json={"income": "2.000", "calculation_mode": "net-to-gross"},
    )

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["meta"]["mode"] == "net-to-gross"
    assert payload["meta"]["search"]["converged"] is True
    assert payload["result"]["net_monthly"] == pytest.approx(2000, abs=0.05)
    assert payload["result"]["gross_monthly"] > 2000


def test_calculation_endpoint_returns_validation_error(client: FlaskClient) -> None:
    """Invalid payloads should return a structured 400 response."""

    response = client.post("/api/v1/calculations", json={"income": -100})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert "income" in payload["message"]


def test_calculation_endpoint_rejects_non_json(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations", data="income=3000", content_type="text/plain"
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "bad_request"


def test_calculation_endpoint_rejects_non_finite_amounts(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations",
        data='{"income": NaN}',
        content_type="application/json",
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "validation_error"
