"""REST endpoints for salary calculations."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from bruttonetto.backend.services import (
    build_calculation_response,
    calculate_salary_response,
    parse_calculation_payload,
)

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1")


@blueprint.post("/calculations")
def create_calculation() -> tuple[Any, int]:
    """Run a gross-to-net or net-to-gross calculation for the JSON payload."""

    payload = parse_calculation_payload(request)
    result = calculate_salary_response(payload)

    return build_calculation_response(result)
