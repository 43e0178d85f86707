# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger


def validate_required_config() -> List[str]:
    """
    Validate that all required environment variables are set.
    Returns list of missing required variables.
    """
    missing = []

    if not settings.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    return missing


def validate_config_on_startup():
    """
    Log missing configuration on startup.
    Raises RuntimeError outside development when required config is missing.
    """
    missing_required = validate_required_config()

    if missing_required:
        error_msg = f"Missing required environment variables: {', '.join(missing_required)}"
        if settings.ENV == "development":
            logger.warning(error_msg)
            return
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    if settings.REQUIRE_PHOTO_PROOF:
        logger.info("Photo proof required before job completion")

    logger.info("Configuration validation passed")
