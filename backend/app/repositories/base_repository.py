# backend/app/repositories/base_repository.py
"""
Base repository for the Parla scheduling service.

Repositories never commit. Services own the unit of work and decide when
a sequence of writes becomes visible; repositories only add, flush and query.

IntegrityError is re-raised untouched from every write path. The booking
tables lean on a unique index for slot exclusivity, so a constraint hit is
information the service layer needs, not an infrastructure failure.
"""

import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException

ModelT = TypeVar("ModelT")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelT]):
    """
    Shared lookups and writes for a single mapped model.

    Attributes:
        db: SQLAlchemy session owned by the calling service
        model: Mapped class this repository serves
    """

    def __init__(self, db: Session, model: Type[ModelT]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def _name(self) -> str:
        return self.model.__name__

    def get_by_id(self, id: str) -> Optional[ModelT]:
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading {self._name} {id}: {str(e)}")
            raise RepositoryException(f"Failed to load {self._name}: {str(e)}")

    def find_one_by(self, **criteria: Any) -> Optional[ModelT]:
        """First row matching every ``column=value`` pair, or None."""
        try:
            return self.db.query(self.model).filter_by(**criteria).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error querying {self._name} by {sorted(criteria)}: {str(e)}")
            raise RepositoryException(f"Failed to query {self._name}: {str(e)}")

    def create(self, **fields: Any) -> ModelT:
        """
        Add a new row and flush so defaults and constraints apply immediately.

        Raises:
            IntegrityError: On any constraint violation
            RepositoryException: On other database errors
        """
        entity = self.model(**fields)
        try:
            self.db.add(entity)
            self.db.flush()
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self._name}: {str(e)}")
            raise RepositoryException(f"Failed to create {self._name}: {str(e)}")
        return entity

    def add_all(self, entities: List[ModelT]) -> List[ModelT]:
        try:
            self.db.add_all(entities)
            self.db.flush()
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error adding {len(entities)} {self._name} rows: {str(e)}")
            raise RepositoryException(f"Failed to add {self._name} rows: {str(e)}")
        return entities

    def flush(self) -> None:
        self.db.flush()

    def delete(self, id: str) -> bool:
        """Delete by primary key. False when there was nothing to delete."""
        entity = self.get_by_id(id)
        if entity is None:
            return False
        try:
            self.db.delete(entity)
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting {self._name} {id}: {str(e)}")
            raise RepositoryException(f"Failed to delete {self._name}: {str(e)}")
        return True
