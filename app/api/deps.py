from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.config import get_settings

settings = get_settings()

# Fallback to sqlite for dev/test if not set
DB_URL = settings.database_url or "sqlite+aiosqlite:///./bookings.db"

engine = create_async_engine(DB_URL, echo=False)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)
