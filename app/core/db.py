from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from .config import settings
from .base import Base

engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

async def get_session():
    async with SessionLocal() as session:
        yield session

async def init_models():
    ## In dev-only "create_all" mode the app owns the schema; otherwise, migrations do.
    if settings.DB_MANAGE == "create_all":
        # register every mapped table on Base.metadata
        import app.modules.apps.models  # noqa: F401
        import app.modules.templates.models  # noqa: F401
        import app.modules.notifications.models  # noqa: F401
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
