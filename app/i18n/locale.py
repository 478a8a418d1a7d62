"""
Locale helpers

Pure functions for picking the language of a request:
- Accept-Language header parsing with quality-value (q=) support
- resolution order: explicit ``lang`` query parameter, Accept-Language,
  configured default
"""

from __future__ import annotations

from fastapi import Query, Request

from app.config import settings


def parse_accept_language(header: str, supported: list[str]) -> str | None:
    """Parse an Accept-Language header and return the best matching locale.

    Algorithm:
    1. Split header into tags with optional q-values (default q=1.0).
    2. Sort by q-value descending.
    3. For each tag, try exact match in `supported`, then base-language match.
    4. Return the first match or None if nothing matches.

    Args:
        header:    Value of the Accept-Language HTTP header, e.g.
                   "fr-CA,fr;q=0.9,en-US;q=0.8,en;q=0.7".
        supported: Ordered list of locale codes the server supports.

    Returns:
        The best matching locale from `supported`, or None.
    """
    if not header:
        return None

    weighted: list[tuple[float, str]] = []
    for part in header.split(","):
        part = part.strip()
        if not part:
            continue
        if ";q=" in part:
            tag, q_str = part.split(";q=", 1)
            try:
                q = float(q_str.strip())
            except ValueError:
                q = 1.0
        else:
            tag = part
            q = 1.0
        weighted.append((q, tag.strip()))

    # Stable sort preserves header order at equal q
    weighted.sort(key=lambda x: x[0], reverse=True)

    supported_lower = [s.lower() for s in supported]

    for _, tag in weighted:
        tag_lower = tag.lower()
        if tag_lower in supported_lower:
            return supported[supported_lower.index(tag_lower)]
        # "fr-CA" → "fr"
        base = tag_lower.split("-")[0]
        if base in supported_lower:
            return supported[supported_lower.index(base)]

    return None


def resolve_locale(lang: str | None, accept_language: str, supported: list[str], default: str) -> str:
    if lang and lang in supported:
        return lang
    return parse_accept_language(accept_language, supported) or default


def get_locale(request: Request, lang: str | None = Query(default=None, description="Content language")) -> str:
    """FastAPI dependency returning the language a public page is served in."""
    return resolve_locale(
        lang,
        request.headers.get("Accept-Language", ""),
        settings.locales,
        settings.default_locale,
    )
