import os
from typing import List, Tuple
from dotenv import load_dotenv
from loguru import logger

load_dotenv()

ENV = os.getenv("ENV", "local")

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "1000"))
ANALYTICS_MAX_RECORDS = int(os.getenv("ANALYTICS_MAX_RECORDS", "1000"))

IMPORT_RATE_LIMIT = os.getenv("IMPORT_RATE_LIMIT", "5/hour")
DELETE_ALL_RATE_LIMIT = os.getenv("DELETE_ALL_RATE_LIMIT", "10/hour")
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() in ["true", "1", "yes"]

REQUIRED_BACKEND_ENV_VARS = []

# Local runs fall back to a localhost Mongo; deployed environments must be explicit
if ENV in ("production", "test"):
    REQUIRED_BACKEND_ENV_VARS.extend(["MONGO_URI", "ALLOWED_ORIGINS"])


def validate_env_vars(required_vars: List[str]) -> Tuple[bool, List[str]]:
    missing = [var for var in required_vars if not os.getenv(var)]
    return len(missing) == 0, missing


async def validate_backend_startup() -> None:
    from crm.database import check_connection

    logger.info("Validating backend environment...")

    all_present, missing = validate_env_vars(REQUIRED_BACKEND_ENV_VARS)
    if not all_present:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")
    logger.info("✓ Required environment variables present")

    is_healthy, error = await check_connection()
    if not is_healthy:
        raise RuntimeError(f"MongoDB health check failed: {error}")

    logger.info("✓ MongoDB connection successful")
    logger.info("Backend validation complete - ready to start")
