from fastapi import APIRouter, Depends

from crm.dependencies import get_store
from crm.models.record_store import RecordStore

router = APIRouter()


@router.get("/")
async def root():
    return {
        "service": "Insurance CRM - Backend API",
        "version": "1.0",
        "status": "operational",
        "endpoints": {
            "health": "/health",
            "insurance": "/insurance/*",
            "inbound": "/inbound/*",
            "analytics": "/analytics"
        },
        "documentation": "/docs"
    }


@router.get("/health")
async def health(store: RecordStore = Depends(get_store)):
    is_connected = await store.ping()

    return {
        "status": "healthy" if is_connected else "degraded",
        "service": "crm-backend-api",
        "database": "connected" if is_connected else "unreachable"
    }
