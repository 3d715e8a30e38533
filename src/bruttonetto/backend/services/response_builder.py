"""Utilities for serialising calculation responses."""

from __future__ import annotations

from collections.abc import Mapping
from http import HTTPStatus
from typing import Any, Tuple

from flask import jsonify, url_for

ResponseTuple = Tuple[Any, int]


def build_calculation_response(payload: Mapping[str, Any]) -> ResponseTuple:
    """Return a Flask JSON response for the calculation ``payload``."""

    return jsonify(payload), HTTPStatus.OK


def build_share_response(token: str) -> ResponseTuple:
    """Return the token and the path under which it can be resolved."""

    payload = {
        "token": token,
        "path": url_for("shares.get_share", token=token),
    }
    return jsonify(payload), HTTPStatus.CREATED
