"""Endpoints for creating and resolving shareable calculation links."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify, request

from bruttonetto.backend.app.http import NOT_FOUND, problem_response
from bruttonetto.backend.app.services.calculation_service import build_calculator_input
from bruttonetto.backend.app.services.share_service import (
    decode_share_token,
    encode_share_token,
)
from bruttonetto.backend.services import (
    build_share_response,
    calculate_salary_response,
    parse_calculation_payload,
    resolve_request_locale,
)

blueprint = Blueprint("shares", __name__, url_prefix="/api/v1/shares")

logger = logging.getLogger(__name__)


@blueprint.post("")
def create_share() -> tuple[Any, int]:
    """Encode the submitted calculation input into a share token."""

    payload = parse_calculation_payload(request)
    calculator_input = build_calculator_input(payload)
    token = encode_share_token(calculator_input)
    logger.debug("Created share token of %d characters", len(token))
    return build_share_response(token)


@blueprint.get("/<string:token>")
def get_share(token: str) -> tuple[Any, int]:
    """Decode ``token`` and return the input together with its calculation."""

    calculator_input = decode_share_token(token)
    if calculator_input is None:
        return problem_response(
            NOT_FOUND, status=HTTPStatus.NOT_FOUND, message="Share link is invalid"
        ).to_response()

    fields = calculator_input.model_dump()
    locale = resolve_request_locale(request)
    calculation = calculate_salary_response({**fields, "locale": locale})
    return jsonify({"token": token, "input": fields, "calculation": calculation}), HTTPStatus.OK
