"""Async SQLAlchemy engine and session factory.

Usage in routes:
    from attachkit.database import get_db

    @router.get("/files/{file_id}")
    async def get_file(file_id: UUID, db: AsyncSession = Depends(get_db)):
        return await db.get(FileRecord, file_id)

Attachment files are written from mapper events inside the flush, so a
failed write rolls back the surrounding commit.
"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from attachkit.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"echo": False}
    return {
        "echo": False,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
    }


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency that yields an async DB session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
