"""MongoDB database connection manager."""

from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from typing import Optional

from app.config import settings
from app.core.logging import logger
from app.features.doctors.models import Doctor
from app.features.hospitals.models import Hospital
from app.features.patients.models import Patient


DOCUMENT_MODELS = [Patient, Doctor, Hospital]


class Database:
    """MongoDB database connection manager."""

    client: Optional[AsyncIOMotorClient] = None

    @classmethod
    async def connect_db(cls):
        """Connect to MongoDB and register the directory collections with Beanie."""
        cls.client = AsyncIOMotorClient(settings.MONGODB_URL)

        await init_beanie(
            database=cls.client[settings.DATABASE_NAME],
            document_models=DOCUMENT_MODELS,
        )

        logger.info(f"Connected to MongoDB database: {settings.DATABASE_NAME}")

    @classmethod
    async def close_db(cls):
        if cls.client:
            cls.client.close()
            cls.client = None
            logger.info("Closed MongoDB connection")
