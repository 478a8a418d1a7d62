"""
i18n package

Locale resolution for the multi-language content modules.
"""

from .locale import get_locale, parse_accept_language, resolve_locale

__all__ = [
    "get_locale",
    "parse_accept_language",
    "resolve_locale",
]
