"""Expose the active tax table so clients can display rates and thresholds."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify

from bruttonetto.backend.config.tax_config import load_tax_configuration
from bruttonetto.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the active tax table."""

    config = load_tax_configuration()
    return {
        "version": get_project_version(),
        "tax_year": config.year,
    }


@blueprint.get("")
def get_configuration() -> tuple[Any, int]:
    """Return the active tax table together with version metadata."""

    config = load_tax_configuration()
    payload = {
        **get_configuration_metadata(),
        "configuration": config.model_dump(mode="json"),
    }
    return jsonify(payload), 200


@blueprint.get("/meta")
def get_application_metadata() -> tuple[Any, int]:
    """Expose lightweight application metadata such as the version identifier."""

    return jsonify(get_configuration_metadata()), 200
