"""FastAPI application for the visitor log."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator

import fastapi
import fastapi.exceptions
import fastapi.responses
import starlette.exceptions
import uvicorn

import common.app
import common.settings

from . import routes, sweeper
from .errors import NotFoundError, ValidationError, VisitorLogError
from .store import VisitorStore

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: fastapi.FastAPI) -> AsyncGenerator[None, None]:
    """Create the log file if needed and run the daily sweep in the background."""
    store: VisitorStore = app.state.store
    store.ensure()
    task = asyncio.create_task(sweeper.run_daily(store), name='visitor-log-sweeper')
    try:
        yield
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


def error_response(exc: VisitorLogError) -> fastapi.responses.JSONResponse:
    """Render an error as ``{"error": message}`` with its status code."""
    return fastapi.responses.JSONResponse(
        status_code=exc.status_code, content={'error': exc.message}
    )


async def handle_visitor_log_error(
    request: fastapi.Request, exc: Exception
) -> fastapi.responses.JSONResponse:
    assert isinstance(exc, VisitorLogError)
    return error_response(exc)


async def handle_request_validation_error(
    request: fastapi.Request, exc: Exception
) -> fastapi.responses.JSONResponse:
    # Malformed or non-object bodies are reported the same way as missing fields.
    return error_response(ValidationError())


async def handle_http_exception(
    request: fastapi.Request, exc: Exception
) -> fastapi.responses.JSONResponse:
    """Map unknown paths and unsupported methods to 404, pass others through."""
    assert isinstance(exc, starlette.exceptions.HTTPException)
    if exc.status_code in (404, 405):
        return error_response(NotFoundError())
    return fastapi.responses.JSONResponse(
        status_code=exc.status_code, content={'error': exc.detail}
    )


def create_app(store: VisitorStore | None = None) -> fastapi.FastAPI:
    """Build the visitor log app around *store* (by default the configured log)."""
    app = common.app.create_app(
        'Visitor Log', routers=[routes.router], lifespan=lifespan
    )
    if store is None:
        store = VisitorStore(common.settings.VISITOR_LOG_PATH)
    app.state.store = store
    app.add_exception_handler(VisitorLogError, handle_visitor_log_error)
    app.add_exception_handler(
        fastapi.exceptions.RequestValidationError, handle_request_validation_error
    )
    app.add_exception_handler(
        starlette.exceptions.HTTPException, handle_http_exception
    )
    return app


app = create_app()


if __name__ == '__main__':
    logger.info('Server running on http://localhost:%d', common.settings.PORT)
    uvicorn.run(app, host='0.0.0.0', port=common.settings.PORT)
