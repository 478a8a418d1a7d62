"""
Slug helpers

``slugify`` turns free text into a URL-safe candidate. ``assign_slug``
makes a candidate unique within one language by probing storage for
``candidate``, ``candidate-1``, ``candidate-2``, ... until a free value is
found.
"""

import logging
import re
import secrets
from collections.abc import Awaitable, Callable

from unidecode import unidecode

from app.config import settings
from app.exceptions import DuplicateResourceError

logger = logging.getLogger(__name__)

# (slug, lang, exclude_id) -> True when another record already holds the slug
SlugLookup = Callable[[str, str, int | None], Awaitable[bool]]


def slugify(text: str | None) -> str:
    if not text:
        raise ValueError("slugify() requires a non-empty string")
    text = unidecode(text).lower()
    text = re.sub(r"[^a-z0-9]+", "-", text).strip("-")
    return text or "n-a"


async def assign_slug(
    candidate: str | None,
    lang: str,
    slug_exists: SlugLookup,
    exclude_id: int | None = None,
    max_attempts: int | None = None,
) -> str | None:
    """Return a slug for ``candidate`` that no other record uses in ``lang``.

    An empty candidate yields ``None`` without touching storage. Pass the
    record's own id as ``exclude_id`` on update so it does not collide with
    itself. After ``max_attempts`` numbered suffixes a random suffix is
    tried instead; if that also keeps colliding, DuplicateResourceError is
    raised.

    Only reads are performed; the caller persists the result.
    """
    if not candidate:
        return None

    if max_attempts is None:
        max_attempts = settings.slug_max_attempts

    attempt = candidate
    for suffix in range(1, max_attempts + 1):
        if not await slug_exists(attempt, lang, exclude_id):
            return attempt
        attempt = f"{candidate}-{suffix}"

    logger.warning("Slug '%s' (%s) still taken after %d attempts, using random suffix", candidate, lang, max_attempts)
    for _ in range(max_attempts):
        attempt = f"{candidate}-{secrets.token_hex(3)}"
        if not await slug_exists(attempt, lang, exclude_id):
            return attempt

    raise DuplicateResourceError(resource_type="Translation", field="slug", value=candidate)
