from __future__ import annotations

import logging

from billmaster.core.config import DATABASE_URL, IS_PROD, JWT_SECRET_KEY

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"


def validate_runtime_environment() -> None:
    """Em produção, recusa subir sem segredo JWT ou com SQLite."""
    if not IS_PROD:
        return
    if not JWT_SECRET_KEY:
        logger.critical("%s JWT_SECRET_KEY is required in production", STARTUP_PREFIX)
        raise RuntimeError("JWT_SECRET_KEY is required in production environment")
    if DATABASE_URL.startswith("sqlite"):
        logger.critical("%s SQLite is forbidden in production", STARTUP_PREFIX)
        raise RuntimeError("SQLite is forbidden in production environment")
