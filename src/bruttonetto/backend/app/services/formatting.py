"""Currency formatting and locale-tolerant number parsing helpers."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

DEFAULT_LOCALE = "de-AT"

_WHITESPACE = re.compile(r"\s+")
_INVALID_NUMBER_CHARACTERS = re.compile(r"[^\d.,\s]")
_VALID_NUMBER_INPUT = re.compile(r"^[\d.,\s]+$")


@dataclass(frozen=True)
class CurrencyConvention:
    """Grouping, decimal separator and symbol placement for a locale."""

    group: str
    decimal: str
    pattern: str

    def render(self, value: float) -> str:
        rounded = round(value, 2)
        digits = f"{abs(rounded):,.2f}"
        digits = digits.translate(str.maketrans({",": self.group, ".": self.decimal}))
        text = self.pattern.format(amount=digits, symbol="€")
        return f"-{text}" if rounded < 0 else text


_CONVENTIONS: dict[str, CurrencyConvention] = {
    "de-at": CurrencyConvention(group=".", decimal=",", pattern="{symbol} {amount}"),
    "de-de": CurrencyConvention(group=".", decimal=",", pattern="{amount} {symbol}"),
    "de-ch": CurrencyConvention(group="’", decimal=".", pattern="{symbol} {amount}"),
    "en-us": CurrencyConvention(group=",", decimal=".", pattern="{symbol}{amount}"),
    "en-gb": CurrencyConvention(group=",", decimal=".", pattern="{symbol}{amount}"),
}

_LANGUAGE_DEFAULTS = {
    "de": "de-at",
    "en": "en-us",
}


def resolve_convention(locale: str | None) -> CurrencyConvention:
    """Return the currency convention for ``locale``, falling back sensibly."""

    if not locale:
        return _CONVENTIONS[DEFAULT_LOCALE.lower()]

    key = locale.strip().replace("_", "-").lower()
    if key in _CONVENTIONS:
        return _CONVENTIONS[key]

    language = key.split("-")[0]
    fallback = _LANGUAGE_DEFAULTS.get(language, DEFAULT_LOCALE.lower())
    return _CONVENTIONS[fallback]


def normalise_locale(locale: str | None) -> str:
    """Return ``locale`` as a ``ll-RR`` tag, defaulting to ``de-AT``."""

    if not locale or not locale.strip():
        return DEFAULT_LOCALE

    language, _, region = locale.strip().replace("_", "-").partition("-")
    region = region.split("-")[0]
    if not language.isalpha():
        return DEFAULT_LOCALE
    if region:
        return f"{language.lower()}-{region.upper()}"
    return language.lower()


def format_currency(value: float, locale: str = DEFAULT_LOCALE) -> str:
    """Format ``value`` as a EUR amount using ``locale`` conventions."""

    return resolve_convention(locale).render(float(value))


def parse_locale_number(text: str | None) -> float:
    """Parse numbers typed with either ``.`` or ``,`` as decimal separator.

    Returns ``nan`` when the input cannot be interpreted.

    >>> parse_locale_number("3.000,50")
    3000.5
    >>> parse_locale_number("3,000.50")
    3000.5
    """

    if not text or not isinstance(text, str):
        return math.nan

    normalised = _WHITESPACE.sub("", text)

    last_comma = normalised.rfind(",")
    last_period = normalised.rfind(".")
    comma_count = normalised.count(",")
    period_count = normalised.count(".")

    if comma_count + period_count == 1:
        separator_position = max(last_comma, last_period)
        after_separator = normalised[separator_position + 1 :]
        if len(after_separator) == 3:
            normalised = normalised.replace(",", "").replace(".", "")
        else:
            normalised = normalised.replace(",", ".")
    elif comma_count + period_count > 1:
        if comma_count == 0 or period_count == 0:
            normalised = normalised.replace(",", "").replace(".", "")
        elif last_comma > last_period:
            normalised = normalised.replace(".", "").replace(",", ".", 1)
        else:
            normalised = normalised.replace(",", "")

    try:
        return float(normalised)
    except ValueError:
        return math.nan


def is_valid_number_input(text: str | None) -> bool:
    """Return ``True`` when ``text`` contains a parseable, finite number."""

    if not text or not isinstance(text, str):
        return False
    if not _VALID_NUMBER_INPUT.match(text):
        return False
    return math.isfinite(parse_locale_number(text))


def sanitize_number_input(text: str | None) -> str:
    """Strip characters that cannot appear in a number and keep one separator."""

    if not text:
        return ""

    sanitised = _INVALID_NUMBER_CHARACTERS.sub("", text)

    if sanitised.count(",") + sanitised.count(".") > 1:
        last_comma = sanitised.rfind(",")
        last_period = sanitised.rfind(".")
        last_separator = max(last_comma, last_period)
        separator = "," if last_comma > last_period else "."
        before = re.sub(r"[.,]", "", sanitised[:last_separator])
        after = re.sub(r"[.,]", "", sanitised[last_separator + 1 :])
        sanitised = f"{before}{separator}{after}"

    return sanitised


__all__ = [
    "CurrencyConvention",
    "DEFAULT_LOCALE",
    "format_currency",
    "is_valid_number_input",
    "normalise_locale",
    "parse_locale_number",
    "resolve_convention",
    "sanitize_number_input",
]
