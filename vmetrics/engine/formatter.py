"""VMetrics — Presentation Formatter.

Renders numbers as currency, percentage or grouped integer strings for a
locale. Non-finite input is rendered as zero; formatting never raises.
"""

from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Dict, NamedTuple

from vmetrics.engine.normalizer import to_finite_float


class LocaleFormat(NamedTuple):
    group: str
    decimal: str
    symbol_first: bool
    symbol_space: bool


DEFAULT_LOCALE = "en_US"

LOCALE_FORMATS: Dict[str, LocaleFormat] = {
    "en_US": LocaleFormat(",", ".", True, False),
    "en_GB": LocaleFormat(",", ".", True, False),
    "en_CA": LocaleFormat(",", ".", True, False),
    "en_AU": LocaleFormat(",", ".", True, False),
    "pt_BR": LocaleFormat(".", ",", True, True),
    "pt_PT": LocaleFormat(" ", ",", False, True),
    "es_ES": LocaleFormat(".", ",", False, True),
    "es_MX": LocaleFormat(",", ".", True, False),
    "es_AR": LocaleFormat(".", ",", True, True),
    "de_DE": LocaleFormat(".", ",", False, True),
    "fr_FR": LocaleFormat(" ", ",", False, True),
    "it_IT": LocaleFormat(".", ",", False, True),
}

CURRENCY_SYMBOLS: Dict[str, str] = {
    "BRL": "R$",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CAD": "C$",
    "AUD": "A$",
    "JPY": "¥",
    "CNY": "¥",
    "INR": "₹",
    "MXN": "$",
    "ARS": "$",
    "CLP": "$",
    "COP": "$",
    "PEN": "S/",
    "UYU": "$",
    "PYG": "₲",
    "BOB": "Bs",
    "CHF": "CHF",
    "NZD": "$",
    "SGD": "S$",
    "HKD": "HK$",
    "KRW": "₩",
    "THB": "฿",
    "PHP": "₱",
    "ZAR": "R",
    "NGN": "₦",
}

# Locale used when only a currency is given
CURRENCY_LOCALES: Dict[str, str] = {
    "BRL": "pt_BR",
    "USD": "en_US",
    "EUR": "de_DE",
    "GBP": "en_GB",
    "CAD": "en_CA",
    "AUD": "en_AU",
    "MXN": "es_MX",
    "ARS": "es_AR",
}


def resolve_locale(locale: str | None) -> LocaleFormat:
    """Match "pt-BR", "pt_br" or "pt" to a known locale, else en_US."""
    if not locale:
        return LOCALE_FORMATS[DEFAULT_LOCALE]
    parts = str(locale).replace("-", "_").split("_")
    language = parts[0].lower()
    if len(parts) > 1:
        key = f"{language}_{parts[1].upper()}"
        if key in LOCALE_FORMATS:
            return LOCALE_FORMATS[key]
    for key, fmt in LOCALE_FORMATS.items():
        if key.split("_")[0] == language:
            return fmt
    return LOCALE_FORMATS[DEFAULT_LOCALE]


def currency_symbol(currency: str | None) -> str:
    code = (currency or "USD").upper()
    return CURRENCY_SYMBOLS.get(code, code)


def locale_for_currency(currency: str | None) -> str:
    return CURRENCY_LOCALES.get((currency or "USD").upper(), DEFAULT_LOCALE)


def _grouped(value: Any, places: int, fmt: LocaleFormat) -> tuple[str, str]:
    """Return (sign, digits) with locale separators and half-up rounding."""
    number = to_finite_float(value) or 0.0
    with localcontext() as ctx:
        # Wide enough for any finite double
        ctx.prec = 400
        quantum = Decimal(1).scaleb(-places)
        rounded = Decimal(repr(number)).quantize(quantum, rounding=ROUND_HALF_UP)
        sign = "-" if rounded < 0 else ""
        text = f"{abs(rounded):,.{places}f}"
    text = text.replace(",", "\x00").replace(".", fmt.decimal)
    return sign, text.replace("\x00", fmt.group)


def format_currency(value: Any, currency: str = "USD", locale: str | None = None) -> str:
    fmt = resolve_locale(locale or locale_for_currency(currency))
    sign, digits = _grouped(value, 2, fmt)
    symbol = currency_symbol(currency)
    space = " " if fmt.symbol_space else ""
    if fmt.symbol_first:
        return f"{sign}{symbol}{space}{digits}"
    return f"{sign}{digits}{space}{symbol}"


def format_percentage(value: Any, locale: str | None = None) -> str:
    sign, digits = _grouped(value, 2, resolve_locale(locale))
    return f"{sign}{digits}%"


def format_count(value: Any, locale: str | None = None) -> str:
    sign, digits = _grouped(value, 0, resolve_locale(locale))
    return f"{sign}{digits}"


def format_value(
    value: Any,
    unit: Any,
    currency: str = "USD",
    locale: str | None = None,
) -> str:
    """Render value for its unit ("currency", "percentage", "count").

    Without a locale, the currency picks one (BRL renders as pt_BR).
    """
    locale = locale or locale_for_currency(currency)
    unit_name = str(getattr(unit, "value", unit))
    if unit_name == "currency":
        return format_currency(value, currency, locale)
    if unit_name == "percentage":
        return format_percentage(value, locale)
    return format_count(value, locale)
