# coursehub/services/base_service.py
"""Base service with common persistence helpers."""
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from typing import Type, TypeVar, Generic

from ..core.exceptions import StorageError

logger = logging.getLogger(__name__)

# Define generic type
T = TypeVar('T')

class BaseService(Generic[T]):
    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    async def _execute(self, stmt):
        """Run a statement, translating driver failures into StorageError."""
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"{self.model.__name__} query failed: {e}")
            await self.db.rollback()
            raise StorageError()

    async def _scalar(self, stmt):
        result = await self._execute(stmt)
        return result.scalar_one_or_none()

    async def _commit(self):
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"{self.model.__name__} commit failed: {e}")
            await self.db.rollback()
            raise StorageError()
