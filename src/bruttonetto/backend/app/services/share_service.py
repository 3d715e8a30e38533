"""Encode calculator inputs into compact, URL-safe share tokens.

Tokens carry only the fields that differ from the defaults, under one-letter
keys with enum values stored as integers. The JSON document is compressed with
zlib and encoded as unpadded URL-safe base64. Older links embedded the full
input as URL-encoded JSON; those still decode.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
import zlib
from collections.abc import Mapping
from typing import Any
from urllib.parse import unquote

from pydantic import ValidationError

from bruttonetto.backend.app.models import CalculatorInput

_LOGGER = logging.getLogger(__name__)

SHARE_FORMAT_VERSION = 1
VERSION_KEY = "v"

_FIELD_KEYS: dict[str, str] = {
    "employment_type": "e",
    "income_period": "p",
    "income": "i",
    "calculation_mode": "m",
    "has_children": "h",
    "children_under_18": "u",
    "children_over_18": "o",
    "is_single_earner": "s",
    "family_bonus": "f",
    "taxable_benefits_monthly": "b",
    "company_car_benefit_monthly": "c",
    "allowance": "a",
    "receives_commuter_allowance": "r",
    "commuter_allowance_monthly": "k",
}
_KEY_FIELDS = {key: field for field, key in _FIELD_KEYS.items()}

_ENUM_CODES: dict[str, tuple[str, ...]] = {
    "employment_type": ("employee", "apprentice", "pensioner"),
    "income_period": ("monthly", "yearly"),
    "calculation_mode": ("gross-to-net", "net-to-gross"),
    "family_bonus": ("none", "shared", "full"),
}
_BOOLEAN_FIELDS = frozenset(
    {"has_children", "is_single_earner", "receives_commuter_allowance"}
)
_LEGACY_ALIASES = {"family_bonus": {"half": "shared"}}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[a-zA-Z])(?=[0-9])")


def _compact_value(field: str, value: Any) -> Any:
    if field in _ENUM_CODES:
        return _ENUM_CODES[field].index(value)
    if field in _BOOLEAN_FIELDS:
        return int(bool(value))
    return value


def _expand_value(field: str, value: Any) -> Any:
    if field in _ENUM_CODES:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Invalid code for {field}: {value!r}")
        options = _ENUM_CODES[field]
        if not 0 <= value < len(options):
            raise ValueError(f"Invalid code for {field}: {value!r}")
        return options[value]
    if field in _BOOLEAN_FIELDS:
        return bool(value)
    return value


def encode_share_token(payload: CalculatorInput) -> str:
    """Return a compact URL-safe token describing ``payload``."""

    document: dict[str, Any] = {VERSION_KEY: SHARE_FORMAT_VERSION}
    for field, key in _FIELD_KEYS.items():
        value = getattr(payload, field)
        if value == CalculatorInput.model_fields[field].default:
            continue
        document[key] = _compact_value(field, value)

    raw = json.dumps(document, separators=(",", ":"), sort_keys=True).encode("utf-8")
    token = base64.urlsafe_b64encode(zlib.compress(raw, 9)).decode("ascii")
    return token.rstrip("=")


def _decode_compact(token: str) -> Mapping[str, Any] | None:
    padded = token + "=" * (-len(token) % 4)
    try:
        compressed = base64.urlsafe_b64decode(padded.encode("ascii"))
        document = json.loads(zlib.decompress(compressed).decode("utf-8"))
    except (binascii.Error, zlib.error, UnicodeError, ValueError):
        return None
    return document if isinstance(document, Mapping) else None


def _decode_legacy(token: str) -> Mapping[str, Any] | None:
    try:
        document = json.loads(unquote(token))
    except ValueError:
        return None
    return document if isinstance(document, Mapping) else None


def _normalise_legacy_key(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _fields_from_compact(document: Mapping[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for key, value in document.items():
        if key == VERSION_KEY:
            continue
        field = _KEY_FIELDS.get(key)
        if field is None:
            raise ValueError(f"Unknown share key: {key!r}")
        fields[field] = _expand_value(field, value)
    return fields


def _fields_from_legacy(document: Mapping[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for key, value in document.items():
        field = _normalise_legacy_key(str(key))
        if field not in _FIELD_KEYS:
            _LOGGER.debug("Ignoring unsupported legacy share field %s", key)
            continue
        aliases = _LEGACY_ALIASES.get(field)
        if aliases and isinstance(value, str):
            value = aliases.get(value, value)
        fields[field] = value
    return fields


def decode_share_token(token: str | None) -> CalculatorInput | None:
    """Rebuild the calculator input from ``token``.

    Returns ``None`` when the token is empty, cannot be decoded, uses an
    unsupported format version or describes an invalid input.
    """

    if not token:
        return None

    document = _decode_compact(token)
    try:
        if document is not None and VERSION_KEY in document:
            if document[VERSION_KEY] != SHARE_FORMAT_VERSION:
                _LOGGER.debug("Unsupported share token version %r", document[VERSION_KEY])
                return None
            fields = _fields_from_compact(document)
        else:
            legacy = document if document is not None else _decode_legacy(token)
            if legacy is None:
                return None
            fields = _fields_from_legacy(legacy)
        return CalculatorInput.model_validate(fields)
    except (ValidationError, ValueError) as exc:
        _LOGGER.debug("Rejected share token: %s", exc)
        return None


__all__ = [
    "SHARE_FORMAT_VERSION",
    "decode_share_token",
    "encode_share_token",
]
