"""
Base CRUD operations with SQLAlchemy 2.x patterns.
Reads go through select(); writes commit and roll back on failure.
"""
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.orm import Session
import logging
from typing import TypeVar, Generic, Type, Optional, List, Dict, Any, Sequence

from storeapp.database import Base
from storeapp.exceptions import NotFoundError

logger = logging.getLogger(__name__)
ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    # Name used in "<entity> not found" messages
    entity_name: str = "Record"

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: int, *, options: Sequence = ()) -> Optional[ModelType]:
        """Get record by ID using SQLAlchemy 2.x select()"""
        stmt = select(self.model).where(self.model.id == id)
        if options:
            stmt = stmt.options(*options)
        return db.execute(stmt).scalar_one_or_none()

    def get_or_404(self, db: Session, id: int, *, options: Sequence = ()) -> ModelType:
        obj = self.get(db, id, options=options)
        if obj is None:
            raise NotFoundError(self.entity_name, id)
        return obj

    def get_multi(
        self, db: Session, *, skip: int = 0, limit: Optional[int] = None, options: Sequence = ()
    ) -> List[ModelType]:
        """Get records newest first"""
        stmt = select(self.model).order_by(self.model.id.desc()).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        if options:
            stmt = stmt.options(*options)
        return list(db.execute(stmt).scalars().all())

    def create(self, db: Session, *, obj_in: Dict[str, Any]) -> ModelType:
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        self._commit(db, f"creating {self.model.__name__}")
        db.refresh(db_obj)
        return db_obj

    def update(self, db: Session, *, db_obj: ModelType, obj_in: Dict[str, Any]) -> ModelType:
        for field, value in obj_in.items():
            setattr(db_obj, field, value)
        self._commit(db, f"updating {self.model.__name__} {db_obj.id}")
        db.refresh(db_obj)
        return db_obj

    def remove(self, db: Session, *, db_obj: ModelType) -> ModelType:
        db.delete(db_obj)
        self._commit(db, f"deleting {self.model.__name__} {db_obj.id}")
        return db_obj

    def _commit(self, db: Session, action: str) -> None:
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.error(f"Integrity error {action}: {e}")
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error {action}: {e}")
            raise
