"""
Generic CRUD utilities shared by the user and customer endpoints.

Both resources carry a unique email and a password hash, so the helpers
include the email lookup and password change they both need.
"""
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clientdesk.core.exceptions import NotFoundError

ModelType = TypeVar("ModelType")


class CRUDOperations(Generic[ModelType]):
    """
    Generic CRUD operations for database models.

    Usage:
        user_crud = CRUDOperations(User, "User")
        user = await user_crud.get_or_404(db, user_id)
    """

    def __init__(self, model: type[ModelType], resource_name: str = "Resource"):
        """
        Args:
            model: SQLAlchemy model class
            resource_name: Name used in not-found messages
        """
        self.model = model
        self.resource_name = resource_name

    async def get(self, db: AsyncSession, id: Any) -> ModelType | None:
        return await db.get(self.model, id)

    async def get_or_404(self, db: AsyncSession, id: Any) -> ModelType:
        """
        Get a single record by ID.

        Raises:
            NotFoundError: If record not found; the app maps it to a 404
        """
        obj = await self.get(db, id)
        if obj is None:
            raise NotFoundError(self.resource_name, str(id))
        return obj

    async def get_all(self, db: AsyncSession) -> list[ModelType]:
        """Load every record, in insertion order."""
        result = await db.execute(select(self.model).order_by(self.model.created_at, self.model.id))
        return list(result.scalars().all())

    async def get_by_email(self, db: AsyncSession, email: str) -> ModelType | None:
        result = await db.execute(
            select(self.model).where(func.lower(self.model.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def email_is_registered(self, db: AsyncSession, email: str, exclude_id: Any = None) -> bool:
        """Check whether another record already uses ``email``."""
        existing = await self.get_by_email(db, email)
        return existing is not None and existing.id != exclude_id

    async def create(self, db: AsyncSession, data: dict[str, Any]) -> ModelType:
        db_obj = self.model(**data)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update(self, db: AsyncSession, db_obj: ModelType, data: dict[str, Any]) -> ModelType:
        """
        Update an existing record.

        Args:
            db: Database session
            db_obj: Existing model instance
            data: Field values to set; unknown keys are ignored

        Returns:
            Updated model instance
        """
        for field, value in data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def change_password(self, db: AsyncSession, db_obj: ModelType, password_hash: str) -> ModelType:
        return await self.update(db, db_obj, {"password_hash": password_hash})

    async def delete(self, db: AsyncSession, db_obj: ModelType) -> None:
        await db.delete(db_obj)
        await db.commit()

