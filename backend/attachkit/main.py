"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from attachkit.config import settings
from attachkit.database import engine, get_db
from attachkit.models import Base, FileRecord

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the upload directory on startup."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    upload_dir = FileRecord.__upload_options__.base_directory
    upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Storing uploads under {upload_dir}")

    yield

    await engine.dispose()


app = FastAPI(
    title="Attachkit API",
    version="1.0.0",
    description="Records with files kept in sync on disk.",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
async def health_check():
    """Verify API and database connectivity."""
    try:
        async for db in get_db():
            await db.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
    except Exception as e:
        return {"status": "error", "database": str(e)}


# Register routers
from attachkit.routes.files import router as files_router
app.include_router(files_router)
