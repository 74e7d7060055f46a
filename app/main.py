from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from pathlib import Path
from app.config import settings
from app.database import Database
from app.dependencies import get_maps_gateway
from app.features.ai.router import router as ai_router
from app.features.auth.router import router as auth_router
from app.features.doctors.router import router as doctors_router
from app.features.hospitals.router import router as hospitals_router
from app.features.patients.router import router as patients_router
from app.routers import health_router
from app.shared.handlers import register_exception_handlers
from app.core.logging import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI application."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME}...")
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    await Database.connect_db()

    if not settings.has_openai_credential:
        logger.warning("OpenAI credential not configured - AI endpoints will serve demo responses")
    if not settings.has_maps_credential:
        logger.warning("Google Maps credential not configured - locator will use demo data")

    logger.info("Application started successfully")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await get_maps_gateway().aclose()
    await Database.close_db()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Patient, doctor and hospital directory with a hospital locator and AI health assistant",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Register routers
app.include_router(health_router)
app.include_router(auth_router, prefix=settings.API_PREFIX)
app.include_router(patients_router, prefix=settings.API_PREFIX)
app.include_router(doctors_router, prefix=settings.API_PREFIX)
app.include_router(hospitals_router, prefix=settings.API_PREFIX)
app.include_router(ai_router, prefix=settings.API_PREFIX)
