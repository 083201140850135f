"""
Base repository.

Generic query helpers shared by repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from billpay.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic operations.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class PaymentRepository(BaseRepository[Payment]):
            def __init__(self, session: AsyncSession):
                super().__init__(Payment, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by(
        self, **filters: Any
    ) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            **filters: Column filters

        Returns:
            First matching entity or None
        """
        stmt = select(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, entity: ModelType) -> ModelType:
        """
        Persist a new entity.

        Args:
            entity: Transient model instance

        Returns:
            The same entity, flushed
        """
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def count(self, **filters: Any) -> int:
        """
        Count entities matching filters.

        Args:
            **filters: Column filters

        Returns:
            Count of matching entities
        """
        stmt = select(func.count()).select_from(self.model)

        if filters:
            stmt = stmt.filter_by(**filters)

        result = await self.session.execute(stmt)
        return result.scalar() or 0
