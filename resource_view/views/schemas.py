"""View option schemas — the typed configuration behind every view.

ViewOptions is used twice:
- as the base configuration of a ViewDefinition (built once, reused)
- as the per-call override bag passed to .element() / .collection()

merge_options() layers an override over a base field by field: only
fields explicitly set on the override take part.
"""

from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ViewPreconditionError

DEFAULT_KEYS = ("$id", "$type", "$ref")

# Slot holding the rendered elements in a collection body.
COLLECTION_SLOT = "$"
COLLECTION_WRAPPER_KEYS = ("$ref", COLLECTION_SLOT, "limit")

PathTemplate = Union[str, list[str]]
ComputationMap = dict[str, Callable[..., Any]]


def unique(values) -> list:
    """De-duplicate keeping first-seen order."""
    seen: list = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


class ViewOptions(BaseModel):
    """Configuration for rendering one resource type."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    path: Optional[PathTemplate] = Field(
        default=None,
        description="Path template with :name placeholders (e.g. '/users/:user/widgets')",
    )
    keys: list[str] = Field(
        default_factory=lambda: list(DEFAULT_KEYS),
        description="Keys read directly off the item, in order",
    )
    type_tag: Optional[str] = Field(
        default=None,
        description="Value stamped into $type when the item has none",
    )
    compute_keys: Optional[ComputationMap] = Field(
        default=None,
        description="key -> fn(body, request, response), run on elements and collections",
    )
    element_keys: Optional[ComputationMap] = Field(
        default=None,
        description="key -> fn(body, request, response), run on elements only",
    )
    collection_keys: Optional[ComputationMap] = Field(
        default=None,
        description="key -> fn(body, request, response), run on collections only",
    )
    accepted_keys: Optional[list[str]] = Field(
        default=None,
        description="Output whitelist; defaults to keys",
    )
    secret_keys: list[str] = Field(
        default_factory=list,
        description="Output blacklist; always wins over accepted_keys",
    )
    element_path: Optional[PathTemplate] = Field(
        default=None,
        description="Self-reference template for elements (no id appended)",
    )
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Path placeholder values shared by every item",
    )
    limit: Optional[int] = Field(
        default=None,
        description="Copied into collection bodies when set",
    )
    views: Optional[Any] = Field(
        default=None,
        description="ViewRegistry used for nested views; the default registry when unset",
    )

    @field_validator("keys", "secret_keys")
    @classmethod
    def _unique_keys(cls, v: list[str]) -> list[str]:
        return unique(v)

    @field_validator("accepted_keys")
    @classmethod
    def _unique_accepted(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        return unique(v) if v is not None else None


def parse_options(options: Union[ViewOptions, Mapping[str, Any], None] = None, **kwargs: Any) -> ViewOptions:
    """Validate a dict (or keyword arguments) into ViewOptions.

    Raises:
        ViewPreconditionError: If validation fails.
    """
    if isinstance(options, ViewOptions) and not kwargs:
        return options
    if isinstance(options, ViewOptions):
        data = {name: getattr(options, name) for name in options.model_fields_set}
    elif options is None:
        data = {}
    elif isinstance(options, Mapping):
        data = dict(options)
    else:
        raise ViewPreconditionError(
            f"View options must be a mapping or ViewOptions, got {type(options).__name__}"
        )
    data.update(kwargs)
    try:
        return ViewOptions(**data)
    except ValidationError as e:
        raise ViewPreconditionError(f"Invalid view options: {e}") from e


def merge_options(
    base: ViewOptions,
    override: Union[ViewOptions, Mapping[str, Any], None] = None,
) -> ViewOptions:
    """Layer override over base.

    Fields set on the override replace the base value, except secret_keys,
    which are unioned so a call can only widen the blacklist.
    """
    if override is None:
        return base
    override = parse_options(override)

    updates = {name: getattr(override, name) for name in override.model_fields_set}
    if "secret_keys" in updates:
        updates["secret_keys"] = unique(list(base.secret_keys) + list(override.secret_keys))
    return base.model_copy(update=updates)


def computation_names(*maps: Optional[Mapping[str, Any]]) -> list[str]:
    """Key names of every non-empty computation map, in order."""
    names: list[str] = []
    for m in maps:
        if m:
            names.extend(m.keys())
    return names


def resolve_accepted_keys(
    options: ViewOptions,
    *computation_maps: Optional[Mapping[str, Any]],
    leading: tuple[str, ...] = (),
) -> list[str]:
    """Accepted keys widened by computation names, minus secret keys."""
    accepted = options.accepted_keys if options.accepted_keys is not None else options.keys
    secret = set(options.secret_keys)
    widened = unique(
        list(leading) + list(accepted) + computation_names(*computation_maps)
    )
    return [key for key in widened if key not in secret]


class ViewSummary(BaseModel):
    """Lightweight view info for listings."""

    name: str
    path: Optional[PathTemplate] = None
    element_path: Optional[PathTemplate] = None
    type_tag: Optional[str] = None
    keys: list[str] = Field(default_factory=list)
    accepted_keys: list[str] = Field(default_factory=list)
    computed_keys: list[str] = Field(default_factory=list)


class ViewFileDefinition(BaseModel):
    """Declarative view as stored in a YAML definitions file.

    Only data fields: computations are code and get attached by whoever
    registers the view in Python.
    """

    name: str = Field(..., description="Registry name (matched lower-cased against item keys)")
    path: PathTemplate
    keys: list[str] = Field(default_factory=lambda: list(DEFAULT_KEYS))
    type_tag: Optional[str] = None
    accepted_keys: Optional[list[str]] = None
    secret_keys: list[str] = Field(default_factory=list)
    element_path: Optional[PathTemplate] = None
    params: dict[str, Any] = Field(default_factory=dict)
    limit: Optional[int] = None
