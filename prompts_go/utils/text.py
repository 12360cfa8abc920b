"""Small string helpers shared by the gateway and form validation."""

from __future__ import annotations

import re

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lower-case ``value`` and collapse every non-alphanumeric run into ``-``."""
    return _NON_SLUG.sub("-", (value or "").lower()).strip("-")
