"""
Main FastAPI application for the Librarian backend
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..auth.credentials import CredentialService, get_credential_service_cached
from ..config import settings
from ..database import init_database
from ..database.connection import dispose_database
from ..events.bus import NotificationBus, create_notification_bus
from ..logging import configure_logging, get_logger
from ..middleware import LoggingContextMiddleware
from ..redis_pool import close_redis_pool

# Configure logging before creating logger
configure_logging(debug=settings.debug, level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Librarian API...")
    init_database()
    logger.info("Database initialized")

    try:
        from ..validation import (
            ValidationError,
            get_startup_recommendations,
            validate_startup_configuration,
        )

        validation_results = await validate_startup_configuration()

        if not validation_results["overall_valid"]:
            logger.error(
                "Application configuration validation failed - some features may not work properly",
                database_errors=validation_results["database"]["errors"],
                auth_errors=validation_results["auth"]["errors"],
                event_bus_errors=validation_results["event_bus"]["errors"],
            )

            if settings.environment.lower() in ("production", "prod"):
                raise ValidationError("Critical configuration validation failed in production")

        recommendations = get_startup_recommendations(validation_results)
        if recommendations:
            logger.info("Configuration recommendations", recommendations=recommendations)

    except ValidationError:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error during startup validation",
            error=str(e),
            note="Application will continue but may have configuration issues",
        )

    yield

    logger.info("Shutting down Librarian API...")
    await app.state.bus.close()
    await close_redis_pool()
    await dispose_database()


def create_app(
    bus: NotificationBus | None = None,
    credentials: CredentialService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The notification bus and credential service are created here, once per
    application, and handed to every GraphQL operation through its context.
    """
    bus = bus or create_notification_bus(settings)
    credentials = credentials or get_credential_service_cached()

    app = FastAPI(
        title="Librarian API",
        description="Books, authors and readers over GraphQL",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.bus = bus
    app.state.credentials = credentials

    app.add_middleware(LoggingContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():  # pyright: ignore [reportUnusedFunction]
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    try:
        from ..graphql.schema import create_graphql_router, validate_schema

        logger.info("Validating GraphQL schema...")
        validate_schema()

        app.include_router(create_graphql_router(bus, credentials), prefix="")
        logger.info("GraphQL endpoint initialized successfully", endpoint="/graphql")
    except Exception as e:  # pragma: no cover
        logger.error("Failed to initialize GraphQL endpoint", error=str(e))
        raise

    return app


# Create the main application instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "librarian.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
