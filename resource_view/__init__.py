"""Resource View - REST view construction layer.

Turns internal domain objects (and lists of them) into filtered,
reference-annotated JSON bodies:
- Element bodies (one resource, declared keys + computed keys)
- Collection bodies (`$ref` + ordered `$` element list + optional limit)
- Nested sub-views resolved through a view registry
"""

from resource_view.views.builder import ViewDefinition
from resource_view.views.registry import ViewRegistry, get_view_registry, register_view
from resource_view.views.schemas import ViewOptions

__version__ = "0.1.0"

__all__ = [
    "ViewDefinition",
    "ViewOptions",
    "ViewRegistry",
    "get_view_registry",
    "register_view",
]
