import logging
from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class Repository(Generic[ModelT]):
    """
    Accès générique à une table : get / add / list / delete.

    Les services construisent leurs règles métier au-dessus de cette
    interface ; la session est injectée par la dépendance FastAPI `get_db`.
    """

    def __init__(self, db: AsyncSession, model: Type[ModelT]):
        self.db = db
        self.model = model

    async def get(self, obj_id: int) -> Optional[ModelT]:
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == obj_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def first(self, *criteria: Any) -> Optional[ModelT]:
        result = await self.db.execute(select(self.model).where(*criteria))
        return result.scalars().first()

    async def list(self, *criteria: Any, order_by: Sequence[Any] = ()) -> List[ModelT]:
        query = select(self.model).execution_options(populate_existing=True)
        if criteria:
            query = query.where(*criteria)
        if order_by:
            query = query.order_by(*order_by)
        result = await self.db.execute(query)
        return list(result.scalars().unique().all())

    async def count(self, *criteria: Any) -> int:
        query = select(func.count()).select_from(self.model)
        if criteria:
            query = query.where(*criteria)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def add(self, obj: ModelT) -> ModelT:
        self.db.add(obj)
        await self.db.flush()
        return obj

    async def delete(self, obj: ModelT) -> None:
        await self.db.delete(obj)
        await self.db.flush()

    async def delete_where(self, *criteria: Any) -> int:
        result = await self.db.execute(delete(self.model).where(*criteria))
        return result.rowcount or 0

    async def commit(self, action: str) -> None:
        """Valide la transaction ; en cas d'échec, rollback puis on relance."""
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Échec du commit [{action}] sur {self.model.__name__}: {e}")
            raise
