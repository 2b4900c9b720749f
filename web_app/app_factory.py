"""FastAPI application factory."""

from fastapi import FastAPI

from .middleware.logging import LoggingMiddleware
from .routes import healthcheck, router


def create_app(service_instance, config) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        service_instance: StorageService instance (may be set later in a lifespan)
        config: Configuration instance

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="shorten",
        description="Short links over pluggable storage",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
    )

    app.state.service = service_instance
    app.state.config = config

    app.add_middleware(LoggingMiddleware)

    # Registered ahead of the catch-all short code route
    app.add_api_route(config.healthcheck_path, healthcheck, methods=["GET"], include_in_schema=False)
    app.include_router(router)

    return app
