"""Request-scoped access to the handles the lifespan puts on `app.state`.

A handle is None when its startup step failed; routes then answer 503
instead of failing on attribute access.
"""

from typing import Any

from fastapi import HTTPException, Request, status

from pagerender.database.manager import DatabaseManager
from pagerender.orchestrator import PageConverter, PageCounter


def _state_handle(request: Request, name: str, unavailable: str) -> Any:
    handle = getattr(request.app.state, name, None)
    if handle is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=unavailable)
    return handle


async def get_db_manager(request: Request) -> DatabaseManager:
    """Page store pool, or 503 when startup could not connect."""
    return _state_handle(request, "db_manager", "Page store unavailable")


async def get_page_converter(request: Request) -> PageConverter:
    """Conversion pipeline, or 503 when it was not built at startup."""
    return _state_handle(request, "page_converter", "Page converter unavailable")


async def get_page_counter(request: Request) -> PageCounter:
    """Page counter; built even when the page store is down."""
    return _state_handle(request, "page_counter", "Page counter unavailable")
