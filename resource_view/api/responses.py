"""JSON responses for rendered views, and error handlers.

Route handlers in an application typically do:

    @router.get("/widgets/{widget_id}")
    async def get_widget(widget_id: str, request: Request):
        return await element_response(widget_view, request, store.get(widget_id))

The request is the view's request context; a fresh Response is the
response context, so computations can set headers or a status code.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from resource_view.views.builder import OptionsLike, ViewDefinition
from resource_view.views.errors import ViewError, ViewPreconditionError

logger = logging.getLogger(__name__)

# Recomputed by JSONResponse for the rendered body.
_SKIPPED_HEADERS = ("content-length", "content-type")


def _to_json_response(body: dict[str, Any], response: Response) -> JSONResponse:
    headers = {
        k: v for k, v in response.headers.items()
        if k.lower() not in _SKIPPED_HEADERS
    }
    return JSONResponse(content=body, status_code=response.status_code, headers=headers)


async def element_response(
    view: ViewDefinition,
    request: Request,
    item: Any,
    options: OptionsLike = None,
) -> JSONResponse:
    """Render one item with view and wrap it in a JSONResponse."""
    response = Response()
    body = await view.element(request, response, options)(item)
    return _to_json_response(body, response)


async def collection_response(
    view: ViewDefinition,
    request: Request,
    items: list,
    options: OptionsLike = None,
) -> JSONResponse:
    """Render a list of items with view and wrap it in a JSONResponse."""
    response = Response()
    body = await view.collection(request, response, options)(items)
    return _to_json_response(body, response)


async def view_error_handler(request: Request, exc: ViewError) -> JSONResponse:
    """Turn a failed render into a 500 with the usual {"detail": ...} body."""
    if isinstance(exc, ViewPreconditionError):
        logger.error(f"View precondition failed for {request.url.path}: {exc}")
    else:
        logger.error(f"View rendering failed for {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


def register_exception_handlers(app: FastAPI, status_code: Optional[int] = None) -> None:
    """Install view error handling on an app."""
    if status_code is None:
        app.add_exception_handler(ViewError, view_error_handler)
        return

    async def _handler(request: Request, exc: ViewError) -> JSONResponse:
        logger.error(f"View rendering failed for {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "error_type": type(exc).__name__},
        )

    app.add_exception_handler(ViewError, _handler)
