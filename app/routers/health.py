"""Service-level endpoints."""

from datetime import datetime
from fastapi import APIRouter

from app.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Liveness check; does not touch the database."""
    return {
        "status": "OK",
        "service": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.utcnow(),
    }


@router.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to the {settings.APP_NAME}",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "api": settings.API_PREFIX,
    }
