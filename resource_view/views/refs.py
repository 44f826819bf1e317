"""Identity, specials and self-reference helpers.

These are the narrow collaborators the builders consume:
- is_identity(): is this value a resource identity (UUID-shaped string)
- strip_specials(): copy an item without framework-reserved `$` keys
- build_ref(): turn a request context + path segments into a `$ref` value
"""

import re
from collections.abc import Mapping
from typing import Any

# Loose 8-4-4-4-12 hex shape; version/variant nibbles are not checked.
_IDENTITY_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)

SPECIAL_PREFIX = "$"


def is_identity(value: Any) -> bool:
    """True if value is a UUID-shaped identity string."""
    return isinstance(value, str) and bool(_IDENTITY_RE.match(value))


def has_identity(value: Any) -> bool:
    """True if value is a mapping whose `$id` is a valid identity."""
    return isinstance(value, Mapping) and is_identity(value.get("$id"))


def strip_specials(item: Mapping[str, Any]) -> dict[str, Any]:
    """Shallow copy of item without keys starting with `$`."""
    return {
        key: value
        for key, value in item.items()
        if not str(key).startswith(SPECIAL_PREFIX)
    }


def _base_url(request: Any) -> str:
    base_url = getattr(request, "base_url", None)
    if base_url is None and isinstance(request, Mapping):
        base_url = request.get("base_url")
    if not base_url:
        return ""
    return str(base_url).rstrip("/")


def build_ref(request: Any, *segments: Any) -> str:
    """Build a self-reference from a request context and path segments.

    Segments are joined with single slashes. When the request exposes a
    `base_url` (a Starlette/FastAPI Request, or a dict carrying one) the
    result is an absolute URL, otherwise an absolute path.

    Example:
        build_ref({}, "/widgets/", "1111-...")  ->  "/widgets/1111-..."
    """
    parts = []
    for segment in segments:
        if segment is None:
            continue
        text = str(segment).strip("/")
        if text:
            parts.append(text)
    return _base_url(request) + "/" + "/".join(parts)
