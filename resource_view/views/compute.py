"""Key computation engine.

Runs a mapping of key -> computation against an in-progress body, one
computation at a time, in the mapping's order. Later computations can read
what earlier ones wrote, so the passes are never parallelised.

A computation is called as `fn(body, request, response)` and may return a
plain value or an awaitable. `None` means "nothing to write": the existing
body value (if any) is left alone.
"""

import inspect
import logging
import os
import time
from collections.abc import Mapping
from typing import Any, Callable, Optional

from .errors import ViewPreconditionError

logger = logging.getLogger(__name__)

TIMING_ENABLED = os.environ.get("RESOURCE_VIEW_TIMING", "").lower() in ("1", "true", "yes")

Computation = Callable[..., Any]


def _check_callables(computations: Mapping[str, Computation]) -> None:
    for key, fn in computations.items():
        if not callable(fn):
            raise ViewPreconditionError(
                f"Computation for key '{key}' is not callable: {type(fn).__name__}"
            )


async def compute_keys(
    body: dict[str, Any],
    computations: Optional[Mapping[str, Computation]],
    request: Any,
    response: Any,
) -> dict[str, Any]:
    """Run computations sequentially and merge non-None results into body.

    Args:
        body: The body being assembled (mutated in place)
        computations: key -> computation, run in mapping order
        request: Request context passed through to every computation
        response: Response context passed through to every computation

    Returns:
        The same body object.

    Raises:
        ViewPreconditionError: If body is not a dict or any computation
            is not callable. Checked before anything runs.
    """
    if not isinstance(body, dict):
        raise ViewPreconditionError(f"Body must be a dict, got {type(body).__name__}")
    if not computations:
        return body

    _check_callables(computations)

    for key, fn in computations.items():
        start_time = time.time()

        value = fn(body, request, response)
        if inspect.isawaitable(value):
            value = await value

        if value is not None:
            body[key] = value

        if TIMING_ENABLED:
            elapsed = int((time.time() - start_time) * 1000)
            logger.debug(f"Computed key '{key}' in {elapsed}ms")

    return body
