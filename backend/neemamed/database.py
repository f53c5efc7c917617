from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from neemamed.config import get_settings

Base = declarative_base()


def make_engine(database_url: str):
    return create_async_engine(database_url, future=True)


def make_sessionmaker(bind) -> async_sessionmaker:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = make_engine(get_settings().database_url)
async_session = make_sessionmaker(engine)


async def create_all(bind=None):
    """Create every table registered on Base."""
    # Model modules register their tables on import
    from neemamed import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
