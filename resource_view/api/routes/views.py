"""API routes for registered views.

Read-only introspection: which resource types are wired up, their path
templates and the keys they expose.
"""

import logging

from fastapi import APIRouter, HTTPException, Request

from resource_view.views.registry import ViewRegistry, get_view_registry
from resource_view.views.schemas import ViewSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/views", tags=["views"])


def _registry(request: Request) -> ViewRegistry:
    return getattr(request.app.state, "view_registry", None) or get_view_registry()


# ── List endpoints ───────────────────────────────────────


@router.get("", response_model=list[ViewSummary])
async def list_views(request: Request):
    """List all registered views."""
    return _registry(request).list_summaries()


@router.get("/{name}", response_model=ViewSummary)
async def get_view(name: str, request: Request):
    """Get one view summary by name (case-insensitive)."""
    registry = _registry(request)
    view = registry.get(name)
    if view is None:
        available = registry.list_keys()
        raise HTTPException(
            status_code=404,
            detail=f"View '{name}' not found. Available: {available}",
        )
    return view.summary(name.lower())
