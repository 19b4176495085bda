from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from logging_config import setup_logging
from crm.lifespan import lifespan
from crm.exceptions import register_exception_handlers
from crm.dependencies import limiter
from crm.api import health, insurance, inbound, analytics
from crm.config import ALLOWED_ORIGINS

setup_logging()

app = FastAPI(
    title="Insurance CRM",
    version="1.0.0",
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
    max_age=600
)

register_exception_handlers(app)

app.include_router(health.router, tags=["Health"])
app.include_router(insurance.router, prefix="/insurance", tags=["Insurance"])
app.include_router(inbound.router, prefix="/inbound", tags=["Inbound"])
app.include_router(analytics.router, tags=["Analytics"])


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
