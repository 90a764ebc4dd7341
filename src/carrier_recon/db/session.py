from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from carrier_recon.core.settings import settings

engine = create_async_engine(settings.database_url, future=True, pool_pre_ping=True)

# Workers keep using row snapshots after per-record commits.
async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
