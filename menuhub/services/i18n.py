"""
Localization Resolver

Menu records carry three parallel text fields, one per supported
language: Kurdish (``ku``, the primary language), English (``en``) and
Arabic (``ar``). These helpers pick the display string for a language.

Names resolve to the exact field with no fallback. Descriptions fall
back to English when the requested language is empty. Unknown codes
are treated as English.

Usage:
    from menuhub.services.i18n import get_localized_name

    get_localized_name(item, "ar")
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Language(str, Enum):
    KU = "ku"
    EN = "en"
    AR = "ar"


@dataclass(frozen=True)
class LanguageInfo:
    code: Language
    name: str
    native_name: str
    rtl: bool


LANGUAGES = [
    LanguageInfo(Language.EN, "English", "English", rtl=False),
    LanguageInfo(Language.KU, "Kurdish", "کوردی", rtl=True),
    LanguageInfo(Language.AR, "Arabic", "العربية", rtl=True),
]

DEFAULT_LANGUAGE = Language.EN

_SUFFIX = {Language.KU: "ku", Language.EN: "en", Language.AR: "ar"}


def normalize_language(code: Any) -> Language:
    """Map any input to a supported language, defaulting to English."""
    if isinstance(code, Language):
        return code
    try:
        return Language(str(code).strip().lower())
    except ValueError:
        return DEFAULT_LANGUAGE


def is_rtl(code: Any) -> bool:
    lang = normalize_language(code)
    return next(info.rtl for info in LANGUAGES if info.code == lang)


def _field(record: Any, base: str, lang: Language) -> str:
    """Read ``<base>_<lang>`` (or camelCase ``<base><Lang>``) from a record."""
    suffix = _SUFFIX[lang]
    snake = f"{base}_{suffix}"
    if isinstance(record, Mapping):
        value = record.get(snake)
        if value is None:
            value = record.get(f"{base}{suffix.capitalize()}")
    else:
        value = getattr(record, snake, None)
    return value or ""


def get_localized_name(record: Any, lang: Any) -> str:
    """Return the name for ``lang`` exactly; empty string when unset."""
    code = lang if isinstance(lang, Language) else _known_or_none(lang)
    if code is None:
        return _field(record, "name", Language.EN)
    return _field(record, "name", code)


def get_localized_description(record: Any, lang: Any) -> str:
    """Return the description for ``lang``, falling back to English."""
    code = lang if isinstance(lang, Language) else _known_or_none(lang)
    english = _field(record, "description", Language.EN)
    if code is None or code == Language.EN:
        return english
    return _field(record, "description", code) or english


def _known_or_none(lang: Any) -> Optional[Language]:
    try:
        return Language(lang)
    except ValueError:
        return None


def format_price(price: float, currency: str = "IQD") -> str:
    """
    Display string for a price.

    Dinar amounts are rounded half-up to whole units with thousands
    separators (``12,500 IQD``); other currencies keep two decimals.
    """
    if currency == "IQD":
        return f"{math.floor(price + 0.5):,} IQD"
    return f"{price:,.2f} {currency}"
