"""View registry — name -> ViewDefinition lookup used for nested views.

Follows the same pattern as the other definition registries:
- YAML-per-file in a definitions directory (optional)
- Lazy loading with _loaded guard
- In-memory dict keyed by lower-cased view name
- Global singleton via get_view_registry()
- Explicit register()/freeze() lifecycle: wire views at startup,
  read-only during request handling
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from .builder import ViewDefinition
from .errors import ViewRegistrationError
from .schemas import ViewFileDefinition, ViewSummary

logger = logging.getLogger(__name__)

DEFINITIONS_DIR = os.environ.get("RESOURCE_VIEW_DEFINITIONS_DIR", "")


class ViewRegistry:
    """Registry of view definitions, keyed by lower-cased name."""

    def __init__(self, definitions_dir: Optional[Path] = None):
        self.definitions_dir = definitions_dir
        self._views: dict[str, ViewDefinition] = {}
        self._loaded = False
        self._frozen = False

    def load(self) -> None:
        """Load declarative view definitions from YAML files."""
        if self._loaded:
            return
        self._loaded = True

        if self.definitions_dir is None:
            return

        if not self.definitions_dir.exists():
            logger.warning(f"View definitions directory not found: {self.definitions_dir}")
            return

        loaded = 0
        for yaml_file in sorted(self.definitions_dir.glob("*.y*ml")):
            try:
                with open(yaml_file, "r") as f:
                    data = yaml.safe_load(f) or {}
                definition = ViewFileDefinition.model_validate(data)
                view = ViewDefinition(definition.model_dump(exclude={"name"}))
                self._views[definition.name.lower()] = view
                loaded += 1
                logger.debug(f"Loaded view: {definition.name}")
            except Exception as e:
                logger.error(f"Failed to load view from {yaml_file}: {e}")

        logger.info(f"Loaded {loaded} view definitions from {self.definitions_dir}")

    def register(self, name: str, view: ViewDefinition) -> ViewDefinition:
        """Register a view under name (stored lower-cased).

        Raises:
            ViewRegistrationError: If the registry is frozen, the name is
                empty, or view is not a ViewDefinition.
        """
        if self._frozen:
            raise ViewRegistrationError(f"Registry is frozen; cannot register '{name}'")
        if not name or not str(name).strip():
            raise ViewRegistrationError("View name must be a non-empty string")
        if not isinstance(view, ViewDefinition):
            raise ViewRegistrationError(
                f"Expected a ViewDefinition for '{name}', got {type(view).__name__}"
            )
        key = str(name).strip().lower()
        if key in self._views:
            logger.info(f"Replacing view: {key}")
        self._views[key] = view
        logger.debug(f"Registered view: {key}")
        return view

    def unregister(self, name: str) -> bool:
        """Remove a view. Returns False if it was not registered."""
        if self._frozen:
            raise ViewRegistrationError(f"Registry is frozen; cannot unregister '{name}'")
        return self._views.pop(str(name).lower(), None) is not None

    def freeze(self) -> None:
        """Make the registry read-only."""
        self.load()
        self._frozen = True
        logger.info(f"View registry frozen with {len(self._views)} views")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Optional[ViewDefinition]:
        """Get a view by name (case-insensitive)."""
        self.load()
        return self._views.get(str(name).lower())

    def __contains__(self, name: object) -> bool:
        self.load()
        return str(name).lower() in self._views

    def list_keys(self) -> list[str]:
        """List all registered view names."""
        self.load()
        return list(self._views.keys())

    def list_summaries(self) -> list[ViewSummary]:
        """List view summaries sorted by name."""
        self.load()
        return [self._views[name].summary(name) for name in sorted(self._views)]

    def count(self) -> int:
        """Get total number of views."""
        self.load()
        return len(self._views)

    def reload(self) -> None:
        """Force reload file definitions. Registered code views are dropped."""
        if self._frozen:
            raise ViewRegistrationError("Registry is frozen; cannot reload")
        self._loaded = False
        self._views.clear()
        self.load()


# Global registry instance
_registry: Optional[ViewRegistry] = None


def get_view_registry() -> ViewRegistry:
    """Get the global view registry instance."""
    global _registry
    if _registry is None:
        _registry = ViewRegistry(Path(DEFINITIONS_DIR) if DEFINITIONS_DIR else None)
        _registry.load()
    return _registry


def register_view(name: str, view: ViewDefinition) -> ViewDefinition:
    """Register a view in the global registry."""
    return get_view_registry().register(name, view)


def reset_view_registry() -> None:
    """Drop the global registry (tests and re-wiring only)."""
    global _registry
    _registry = None
