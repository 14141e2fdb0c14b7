import logging

import uvicorn

from app.core.app_factory import create_app, create_asgi_app
from app.core.config import settings

logger = logging.getLogger(__name__)

app = create_app()
asgi_app = create_asgi_app(app)


def run() -> None:
    """Serve HTTP and Socket.IO on 0.0.0.0:$PORT."""
    logger.info(
        "server.starting",
        extra={
            "host": settings.app.host,
            "port": settings.app.port,
            "app_env": settings.app_env,
            "production_domain": settings.socket.production_domain,
        },
    )
    uvicorn.run(
        asgi_app,
        host=settings.app.host,
        port=settings.app.port,
        timeout_keep_alive=settings.app.keep_alive_timeout_seconds,
        log_config=None,
    )


if __name__ == "__main__":
    run()
