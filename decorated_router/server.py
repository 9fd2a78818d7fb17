"""
Server - Run an assembled app under uvicorn.
"""

import logging
from typing import Any, Optional

import uvicorn

from .config import RouterSettings

logger = logging.getLogger("decorated_router.server")


def serve(app: Any, settings: Optional[RouterSettings] = None, **uvicorn_kwargs: Any) -> None:
    """
    Serve an ASGI app (usually from ``create_app``).

    Args:
        app: ASGI application
        settings: Host, port and log level
        **uvicorn_kwargs: Passed through to ``uvicorn.run``
    """
    settings = settings or RouterSettings()
    logger.info("Serving on http://%s:%d", settings.host, settings.port)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        **uvicorn_kwargs,
    )
