"""Service-layer helpers for the salary calculator HTTP endpoints."""

from bruttonetto.backend.app.services.calculation_service import calculate_salary_response

from .request_parser import parse_calculation_payload, resolve_request_locale
from .response_builder import build_calculation_response, build_share_response

__all__ = [
    "build_calculation_response",
    "build_share_response",
    "calculate_salary_response",
    "parse_calculation_payload",
    "resolve_request_locale",
]
