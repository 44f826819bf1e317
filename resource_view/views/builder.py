"""Element and collection builders.

A ViewDefinition is built once per resource type and reused. Each request
asks it for a renderer:

    render = view.element(request, response)
    body = await render(item)

    render_all = view.collection(request, response, {"limit": 10})
    body = await render_all(items)

Element pipeline (per item, in order):
1. normalise the item (identity string -> {"$id": ...})
2. resolve every declared key (self-reference, nested view, verbatim)
3. stamp $type
4. compute_keys, element_keys, call-site compute_keys (three passes)
5. drop keys that are not accepted or are secret

Collection pipeline: render each item in input order into `$`, then
compute_keys, collection_keys, call-site compute_keys, then filter.
"""

import asyncio
import copy
import dataclasses
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import BaseModel

from .compute import compute_keys
from .errors import ViewPreconditionError
from .paths import render_path
from .refs import build_ref, has_identity, is_identity, strip_specials
from .schemas import (
    COLLECTION_SLOT,
    COLLECTION_WRAPPER_KEYS,
    ViewOptions,
    ViewSummary,
    computation_names,
    merge_options,
    parse_options,
    resolve_accepted_keys,
    unique,
)

logger = logging.getLogger(__name__)

ElementRenderer = Callable[[Any], Awaitable[dict[str, Any]]]
CollectionRenderer = Callable[[list], Awaitable[dict[str, Any]]]
OptionsLike = Union[ViewOptions, Mapping[str, Any], None]


class KeySource(str, Enum):
    """Where a declared key's value comes from, in priority order."""

    SELF_REF = "self_ref"
    NESTED_IDENTITY = "nested_identity"
    NESTED_OBJECT = "nested_object"
    VERBATIM = "verbatim"
    ABSENT = "absent"


class ViewDefinition:
    """Configuration for one resource type plus its element/collection builders.

    Args:
        options: ViewOptions or a dict of its fields
        **kwargs: Field values, merged over options

    Raises:
        ViewPreconditionError: If path is missing or options are invalid.
    """

    def __init__(self, options: OptionsLike = None, **kwargs: Any):
        opts = parse_options(options, **kwargs)
        if not isinstance(opts.path, (str, list)) or not opts.path:
            raise ViewPreconditionError("View path must be a non-empty string")

        self._compute_keys = dict(opts.compute_keys) if opts.compute_keys else None
        self._element_keys = dict(opts.element_keys) if opts.element_keys else None
        self._collection_keys = dict(opts.collection_keys) if opts.collection_keys else None

        accepted = resolve_accepted_keys(
            opts, self._compute_keys, self._element_keys, self._collection_keys
        )
        # Computation maps live on the definition; the options only keep
        # what a call-site override may replace.
        self._options = opts.model_copy(
            update={
                "accepted_keys": accepted,
                "compute_keys": None,
                "element_keys": None,
                "collection_keys": None,
            }
        )

    @property
    def options(self) -> ViewOptions:
        return self._options

    @property
    def path(self):
        return self._options.path

    @property
    def type_tag(self) -> Optional[str]:
        return self._options.type_tag

    @property
    def keys(self) -> list[str]:
        return list(self._options.keys)

    @property
    def accepted_keys(self) -> list[str]:
        return list(self._options.accepted_keys or [])

    @property
    def secret_keys(self) -> list[str]:
        return list(self._options.secret_keys)

    @property
    def compute_keys(self) -> Optional[dict]:
        return self._compute_keys

    @property
    def element_keys(self) -> Optional[dict]:
        return self._element_keys

    @property
    def collection_keys(self) -> Optional[dict]:
        return self._collection_keys

    def element(self, request: Any, response: Any, options: OptionsLike = None) -> ElementRenderer:
        """Return an async function rendering one item for this request."""
        return build_element(self, request, response, options)

    def collection(self, request: Any, response: Any, options: OptionsLike = None) -> CollectionRenderer:
        """Return an async function rendering a list of items for this request."""
        return build_collection(self, request, response, options)

    def summary(self, name: str) -> ViewSummary:
        return ViewSummary(
            name=name,
            path=self.path,
            element_path=self._options.element_path,
            type_tag=self.type_tag,
            keys=self.keys,
            accepted_keys=self.accepted_keys,
            computed_keys=unique(
                computation_names(self._compute_keys, self._element_keys, self._collection_keys)
            ),
        )

    def __repr__(self) -> str:
        return f"ViewDefinition(path={self.path!r}, type_tag={self.type_tag!r})"


# ── Item handling ────────────────────────────────────────


def as_mapping(item: Any) -> dict[str, Any]:
    """Plain dict view of an item (mapping, pydantic model or dataclass)."""
    if isinstance(item, Mapping):
        return dict(item)
    if isinstance(item, BaseModel):
        return item.model_dump(by_alias=True)
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return dataclasses.asdict(item)
    raise ViewPreconditionError(f"Item must be an object, got {type(item).__name__}")


def normalize_item(item: Any) -> dict[str, Any]:
    """Identity strings become {"$id": ...}; lists are accepted with a warning."""
    if isinstance(item, str):
        if not is_identity(item):
            raise ViewPreconditionError(f"Item string is not a valid identity: {item!r}")
        return {"$id": item}
    if isinstance(item, (list, tuple)):
        logger.warning("ViewDefinition.element() called with a list. Is that what you intended?")
        return {str(i): value for i, value in enumerate(item)}
    return as_mapping(item)


def classify_key(key: str, item: Mapping[str, Any], registry: Any) -> KeySource:
    """Decide where the value for a declared key comes from."""
    if key == "$ref" and is_identity(item.get("$id")):
        return KeySource.SELF_REF

    value = item.get(key)
    has_view = registry is not None and str(key).lower() in registry

    if has_view and is_identity(value):
        return KeySource.NESTED_IDENTITY

    if (
        has_view
        and has_identity(value)
        and "$ref" not in value
    ):
        return KeySource.NESTED_OBJECT

    if key in item:
        return KeySource.VERBATIM

    return KeySource.ABSENT


def filter_body(body: dict[str, Any], accepted_keys: list[str], secret_keys: list[str]) -> dict[str, Any]:
    """Drop every key that is not accepted or is secret (in place)."""
    accepted = set(accepted_keys)
    secret = set(secret_keys)
    for key in list(body.keys()):
        if key not in accepted or key in secret:
            del body[key]
    return body


async def _gather_or_cancel(coros: list) -> list:
    """Run coroutines concurrently; if one fails, cancel the rest before re-raising."""
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def _registry_for(options: ViewOptions):
    if options.views is not None:
        return options.views
    from .registry import get_view_registry

    return get_view_registry()


# ── Builders ─────────────────────────────────────────────


def build_element(
    view: ViewDefinition,
    request: Any,
    response: Any,
    options: OptionsLike = None,
) -> ElementRenderer:
    """Merge call options over the view and return the per-item renderer."""
    return _element_renderer(view, request, response, merge_options(view.options, options))


def _element_renderer(
    view: ViewDefinition,
    request: Any,
    response: Any,
    opts: ViewOptions,
) -> ElementRenderer:
    call_computations = opts.compute_keys
    accepted_keys = resolve_accepted_keys(
        opts, call_computations, view.compute_keys, view.element_keys
    )
    secret_keys = list(opts.secret_keys)
    registry = _registry_for(opts)
    nested_options = ViewOptions(views=registry)

    async def render_nested(key: str, value: Any) -> dict[str, Any]:
        nested_view = registry.get(str(key).lower())
        logger.debug(f"Rendering nested view for key '{key}'")
        return await build_element(nested_view, request, response, nested_options)(value)

    async def resolve_key(key: str, item: dict[str, Any], params: dict[str, Any]) -> tuple[KeySource, Any]:
        source = classify_key(key, item, registry)

        if source is KeySource.SELF_REF:
            if opts.element_path:
                segments = render_path(opts.element_path, params)
            else:
                segments = render_path(opts.path, params) + [item["$id"]]
            return source, build_ref(request, *segments)

        if source in (KeySource.NESTED_IDENTITY, KeySource.NESTED_OBJECT):
            return source, await render_nested(key, item[key])

        if source is KeySource.VERBATIM:
            return source, item[key]

        return source, None

    async def render(item: Any) -> dict[str, Any]:
        item = normalize_item(item)
        params = {**opts.params, **item}
        body = strip_specials(item)

        resolved = await _gather_or_cancel(
            [resolve_key(key, item, params) for key in opts.keys]
        )
        for key, (source, value) in zip(opts.keys, resolved):
            if source is not KeySource.ABSENT:
                body[key] = value

        if not body.get("$type") and opts.type_tag is not None:
            body["$type"] = opts.type_tag

        await compute_keys(body, view.compute_keys, request, response)
        await compute_keys(body, view.element_keys, request, response)
        await compute_keys(body, call_computations, request, response)

        return filter_body(body, accepted_keys, secret_keys)

    return render


def build_collection(
    view: ViewDefinition,
    request: Any,
    response: Any,
    options: OptionsLike = None,
) -> CollectionRenderer:
    """Merge call options over the view and return the list renderer."""
    opts = merge_options(view.options, options)
    call_computations = opts.compute_keys
    computations = (call_computations, view.compute_keys, view.element_keys, view.collection_keys)
    element_accepted_keys = resolve_accepted_keys(opts, *computations, leading=(COLLECTION_SLOT,))
    # The wrapper keys survive the filter even when the view omits them.
    accepted_keys = resolve_accepted_keys(opts, *computations, leading=COLLECTION_WRAPPER_KEYS)
    secret_keys = list(opts.secret_keys)

    async def render(items: list) -> dict[str, Any]:
        if not isinstance(items, list):
            raise ViewPreconditionError(f"Collection items must be a list, got {type(items).__name__}")

        element_opts = opts.model_copy(
            update={
                "accepted_keys": element_accepted_keys,
                "params": copy.deepcopy(opts.params),
                "path": opts.element_path if opts.element_path else opts.path,
            }
        )
        element = _element_renderer(view, request, response, element_opts)

        body: dict[str, Any] = {
            "$ref": build_ref(request, *render_path(opts.path, opts.params)),
            COLLECTION_SLOT: [],
        }
        if opts.limit:
            body["limit"] = opts.limit

        # Sequential: `$` mirrors the input order.
        for item in items:
            body[COLLECTION_SLOT].append(await element(item))

        logger.debug(f"Rendered collection {body['$ref']} with {len(items)} elements")

        await compute_keys(body, view.compute_keys, request, response)
        await compute_keys(body, view.collection_keys, request, response)
        await compute_keys(body, call_computations, request, response)

        return filter_body(body, accepted_keys, secret_keys)

    return render
