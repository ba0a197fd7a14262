"""
Operational diagnostics.

Answers only when DEBUG is on and reports which secrets are configured
without ever returning their values.
"""

import platform
import sys
from datetime import datetime, timezone

from fastapi import APIRouter, status

from recruitcrm.core.config import settings
from recruitcrm.core.errors import APIError
from recruitcrm.core.logging import get_logger

logger = get_logger("debug")

router = APIRouter()

SECRET_SETTINGS = (
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "RESEND_API_KEY",
    "GEMINI_API_KEY",
    "SECRET_KEY",
    "DATABASE_URL",
)

PLAIN_SETTINGS = (
    "SUPABASE_URL",
    "PUBLIC_BASE_URL",
    "ENVIRONMENT",
    "STORAGE_BACKEND",
    "CV_BUCKET",
    "GEMINI_MODEL",
    "CAPROVER_APP_NAME",
    "CAPROVER_APP_VERSION",
)


def _presence(value) -> str:
    return "SET" if value else "NOT SET"


@router.get("/env")
async def debug_env():
    if not settings.DEBUG:
        raise APIError(status.HTTP_404_NOT_FOUND, "Not found")

    environment = {name: _presence(getattr(settings, name)) for name in SECRET_SETTINGS}
    for name in PLAIN_SETTINGS:
        environment[name] = getattr(settings, name) or "NOT SET"

    logger.info("=== ENVIRONMENT VARIABLES DEBUG ===")
    for name, value in environment.items():
        logger.info(f"{name}: {value}")

    return {
        "success": True,
        "environment": environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "pythonVersion": platform.python_version(),
        "platform": sys.platform,
    }
