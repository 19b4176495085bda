from contextlib import asynccontextmanager
from fastapi import FastAPI
from loguru import logger

from crm.config import validate_backend_startup
from crm.database import close_mongo_client, get_mongo_client
from crm.models.record_store import MotorRecordStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting...")

    await validate_backend_startup()

    app.state.record_store = MotorRecordStore(get_mongo_client())
    logger.info("Record store ready")

    logger.info("Application ready")

    yield

    logger.info("Shutdown signal received...")
    await close_mongo_client()
    logger.info("Graceful shutdown complete")
