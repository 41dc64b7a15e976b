"""FastAPI app factory shared by the services in this repo."""

from collections.abc import Iterable
from typing import Any

import fastapi

import common.log

health_router = fastapi.APIRouter()


@health_router.api_route('/health', methods=['GET', 'HEAD'])
async def health() -> dict[str, str]:
    """Liveness probe; does not touch storage."""
    return {'status': 'healthy'}


def create_app(
    title: str,
    routers: Iterable[fastapi.APIRouter] = (),
    **kwargs: Any,
) -> fastapi.FastAPI:
    """Create a FastAPI app with logging configured and the health route mounted.

    Each router in *routers* is included after the health route. Remaining
    keyword arguments are forwarded to FastAPI.__init__ (e.g. lifespan).
    """
    common.log.configure_logging()
    app = fastapi.FastAPI(title=title, **kwargs)
    app.include_router(health_router)
    for router in routers:
        app.include_router(router)
    return app
