"""FastAPI dependency injection."""

from datetime import date

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from fleetledger.config import settings
from fleetledger.data.loan_store import LoanStore

engine = create_async_engine(settings.database_url, echo=settings.debug)
async_session = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncSession:
    async with async_session() as session:
        yield session


def get_loan_store(session: AsyncSession = Depends(get_db)) -> LoanStore:
    return LoanStore(session)


def get_today() -> date:
    """Current date for due-date and projection logic. Overridden in tests."""
    return date.today()
