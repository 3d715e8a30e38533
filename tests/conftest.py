"""Test configuration utilities and shared fixtures."""

import sys
from pathlib import Path

# Make ``src`` importable when pytest runs from a checkout without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from bruttonetto.backend.app import create_app  # noqa: E402
from bruttonetto.backend.config.tax_config import (  # noqa: E402
    TaxConfiguration,
    clear_configuration_cache,
    load_tax_configuration,
)


@pytest.fixture(autouse=True)
def _isolated_configuration(monkeypatch: pytest.MonkeyPatch):
    """Ensure each test loads the bundled tax table afresh."""

    monkeypatch.delenv("BRUTTONETTO_TAX_CONFIG", raising=False)
    clear_configuration_cache()
    yield
    clear_configuration_cache()


@pytest.fixture()
def tax_config() -> TaxConfiguration:
    """Return the bundled tax table."""

    return load_tax_configuration()


@pytest.fixture()
def app() -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app()
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()
