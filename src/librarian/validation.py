"""
Configuration validation for the Librarian application.

This module checks that the application is properly configured before
startup.
"""

from __future__ import annotations

from typing import Any

from .config import Settings, settings
from .database.connection import test_database_connection
from .logging import get_logger

logger = get_logger(__name__)


class ValidationError(Exception):
    """Raised when application validation fails."""

    pass


def is_production(app_settings: Settings) -> bool:
    return app_settings.environment.lower() in ("production", "prod")


async def validate_database_connection() -> dict[str, Any]:
    """
    Validate that the database is accessible and responsive.

    Returns a dictionary with validation results and connection details.
    """
    results: dict[str, Any] = {
        "valid": True,
        "warnings": [],
        "errors": [],
    }

    success, error_message = await test_database_connection()

    if success:
        logger.info("Database connection validation successful")
    else:
        results["valid"] = False
        results["errors"].append(error_message)
        logger.error("Database connection validation failed", error=error_message)

    return results


def validate_auth_configuration(app_settings: Settings | None = None) -> dict[str, Any]:
    """Check the token signing setup."""
    app_settings = app_settings or settings
    results: dict[str, Any] = {
        "valid": True,
        "warnings": [],
        "errors": [],
    }

    if not app_settings.jwt_secret:
        message = "LIBRARIAN_JWT_SECRET is not set; login tokens will not survive a restart"
        if is_production(app_settings):
            results["valid"] = False
            results["errors"].append(message)
        else:
            results["warnings"].append(message)
    elif len(app_settings.jwt_secret) < 32:
        results["warnings"].append("LIBRARIAN_JWT_SECRET is shorter than 32 characters")

    if app_settings.token_expiry_hours is None:
        results["warnings"].append("Login tokens are issued without an expiry")
    elif app_settings.token_expiry_hours <= 0:
        results["valid"] = False
        results["errors"].append("LIBRARIAN_TOKEN_EXPIRY_HOURS must be positive")

    if app_settings.bcrypt_rounds < 4 or app_settings.bcrypt_rounds > 31:
        results["valid"] = False
        results["errors"].append("LIBRARIAN_BCRYPT_ROUNDS must be between 4 and 31")

    return results


def validate_event_bus_configuration(app_settings: Settings | None = None) -> dict[str, Any]:
    app_settings = app_settings or settings
    results: dict[str, Any] = {
        "valid": True,
        "warnings": [],
        "errors": [],
    }

    backend = app_settings.event_bus_backend.lower()
    if backend not in ("memory", "redis"):
        results["valid"] = False
        results["errors"].append(f"Unknown event bus backend: {app_settings.event_bus_backend}")
    elif backend == "memory" and is_production(app_settings):
        results["warnings"].append(
            "In-memory event bus only reaches subscribers connected to the same worker"
        )

    if app_settings.subscriber_queue_size < 1:
        results["valid"] = False
        results["errors"].append("LIBRARIAN_SUBSCRIBER_QUEUE_SIZE must be at least 1")

    return results


async def validate_startup_configuration() -> dict[str, Any]:
    """Run every startup check and summarize the outcome."""
    results = {
        "database": await validate_database_connection(),
        "auth": validate_auth_configuration(),
        "event_bus": validate_event_bus_configuration(),
    }
    results["overall_valid"] = all(section["valid"] for section in results.values())
    return results


def get_startup_recommendations(validation_results: dict[str, Any]) -> list[str]:
    """Collect warnings from every section into a flat list."""
    recommendations: list[str] = []
    for name, section in validation_results.items():
        if isinstance(section, dict):
            recommendations.extend(f"{name}: {warning}" for warning in section.get("warnings", []))
    return recommendations
