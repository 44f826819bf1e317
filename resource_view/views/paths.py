"""Path template rendering.

Templates use `:name` placeholders, e.g. "/users/:user/widgets". Unknown
placeholders are left as-is (colon included) so the consumer of the path
can notice them.
"""

import re
from collections.abc import Mapping
from typing import Any, Optional, Union

PLACEHOLDER_RE = re.compile(r":([:$A-Za-z0-9_\-]+)")


def coerce_param(value: Any) -> Any:
    """Replace an object carrying `$id` by that identity."""
    if isinstance(value, Mapping) and value.get("$id") is not None:
        return value["$id"]
    return value


def _render_one(template: str, params: Mapping[str, Any]) -> str:
    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in params or params[key] is None:
            return match.group(0)
        return str(coerce_param(params[key]))

    return PLACEHOLDER_RE.sub(_replace, template)


def render_path(
    template: Union[str, list[str], tuple[str, ...]],
    params: Optional[Mapping[str, Any]] = None,
) -> list[str]:
    """Render one template or a sequence of templates with params.

    Args:
        template: A template string, or a list of them
        params: Placeholder values; objects with `$id` render as the id

    Returns:
        List of rendered strings, one per template.
    """
    params = params or {}
    templates = list(template) if isinstance(template, (list, tuple)) else [template]
    return [_render_one(str(t), params) for t in templates]
