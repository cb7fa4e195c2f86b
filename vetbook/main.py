"""Booking API entry point.

Run with:
    uvicorn vetbook.main:app --reload

Or:
    vetbook serve
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vetbook.api.app import create_app
from vetbook.config import DATABASE_PATH, LOG_FORMAT, Settings
from vetbook.storage.database import VetBookDB

# `vetbook --db PATH serve` sets VETBOOK_DB_PATH after vetbook.config is imported
settings = Settings(database_path=os.getenv("VETBOOK_DB_PATH", DATABASE_PATH))

logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

db = VetBookDB(settings)
db.init_schema()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup and close the database on shutdown."""
    logger.info(f"✅ Database ready: {settings.database_path}")
    yield
    db.close()
    logger.info("✅ Database closed")


app = create_app(db=db, settings=settings)
app.router.lifespan_context = lifespan


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vetbook.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
