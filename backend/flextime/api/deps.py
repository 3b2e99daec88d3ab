from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from flextime.db.repository import TimeTrackingRepository
from flextime.db.session import get_db


async def get_repository(db: AsyncSession = Depends(get_db)) -> TimeTrackingRepository:
    return TimeTrackingRepository(db)
