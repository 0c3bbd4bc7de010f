"""
Base repository with the CRUD operations shared by every domain repository.

Repositories add and flush; committing is left to the service that owns
the unit of work.
"""

from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from messmate.core.exceptions import NotFoundError
from messmate.core.pagination import PaginationParams
from messmate.models.base import BaseModel

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """Generic data access for one model."""

    resource_name: str = "Resource"

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    # ==================== Read ====================

    def get(self, id: Any) -> Optional[ModelType]:
        if id is None:
            return None
        return self.db.get(self.model, str(id))

    def get_or_404(self, id: Any) -> ModelType:
        entity = self.get(id)
        if entity is None:
            raise NotFoundError(self.resource_name, id)
        return entity

    def get_by(self, **filters: Any) -> Optional[ModelType]:
        stmt = select(self.model).filter_by(**filters).limit(1)
        return self.db.scalars(stmt).first()

    def count(self, stmt: Optional[Select] = None) -> int:
        if stmt is None:
            stmt = select(self.model)
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        return int(self.db.scalar(count_stmt) or 0)

    def paginate(self, stmt: Select, params: PaginationParams) -> Tuple[List[ModelType], int]:
        """Run ``stmt`` for one page and return ``(items, total)``."""
        total = self.count(stmt)
        items = list(self.db.scalars(stmt.offset(params.offset).limit(params.limit)).all())
        return items, total

    def all(self, stmt: Optional[Select] = None) -> Sequence[ModelType]:
        if stmt is None:
            stmt = select(self.model)
        return self.db.scalars(stmt).all()

    # ==================== Write ====================

    def add(self, entity: ModelType) -> ModelType:
        self.db.add(entity)
        self.db.flush()
        return entity

    def create(self, **values: Any) -> ModelType:
        return self.add(self.model(**values))

    def update(self, entity: ModelType, values: Dict[str, Any]) -> ModelType:
        for key, value in values.items():
            if hasattr(entity, key):
                setattr(entity, key, value)
        self.db.flush()
        return entity

    def delete(self, entity: ModelType) -> None:
        self.db.delete(entity)
        self.db.flush()
