"""
Base Repository: accesso per chiave primaria e scritture con controllo di versione
"""
from typing import Generic, TypeVar, Optional, List, Dict, Any, Type
from sqlalchemy import inspect
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from src.core.interfaces import IRepository
from src.core.exceptions import NotFoundException, InfrastructureException, ConcurrentModificationException

T = TypeVar('T')
K = TypeVar('K')

class BaseRepository(Generic[T, K], IRepository[T, K]):
    """
    Repository base.

    Ogni scrittura fa commit e refresh; un conflitto sul version counter del modello
    diventa ConcurrentModificationException, ogni altro errore del DB InfrastructureException.
    """

    def __init__(self, session: Session, model_class: Type[T]):
        self._session = session
        self._model_class = model_class
        self._pk_column = inspect(model_class).primary_key[0]

    @property
    def _entity_name(self) -> str:
        return self._model_class.__name__

    def get_by_id(self, id: K) -> Optional[T]:
        try:
            return self._session.query(self._model_class).filter(self._pk_column == id).first()
        except Exception as e:
            raise InfrastructureException(f"Database error retrieving {self._entity_name}: {str(e)}")

    def get_by_id_or_raise(self, id: K) -> T:
        entity = self.get_by_id(id)
        if entity is None:
            raise NotFoundException(self._entity_name, id)
        return entity

    def get_all(self, **filters) -> List[T]:
        """Entità filtrate per uguaglianza sui campi del modello (None = filtro ignorato)"""
        try:
            query = self._apply_filters(self._session.query(self._model_class), filters)
            return query.order_by(self._pk_column).all()
        except Exception as e:
            raise InfrastructureException(f"Database error retrieving {self._entity_name} list: {str(e)}")

    def create(self, entity: T) -> T:
        try:
            self._session.add(entity)
            self._session.commit()
            self._session.refresh(entity)
            return entity
        except Exception as e:
            self._session.rollback()
            raise InfrastructureException(f"Database error creating {self._entity_name}: {str(e)}")

    def update(self, entity: T) -> T:
        try:
            self._session.add(entity)
            self._session.commit()
            self._session.refresh(entity)
            return entity
        except StaleDataError:
            self._session.rollback()
            raise ConcurrentModificationException(self._entity_name, self._entity_id(entity))
        except Exception as e:
            self._session.rollback()
            raise InfrastructureException(f"Database error updating {self._entity_name}: {str(e)}")

    def delete(self, id: K) -> bool:
        try:
            entity = self.get_by_id_or_raise(id)
            self._session.delete(entity)
            self._session.commit()
            return True
        except NotFoundException:
            raise
        except Exception as e:
            self._session.rollback()
            raise InfrastructureException(f"Database error deleting {self._entity_name}: {str(e)}")

    def _apply_filters(self, query, filters: Dict[str, Any]):
        for field_name, value in filters.items():
            if value is None or not hasattr(self._model_class, field_name):
                continue
            field = getattr(self._model_class, field_name)
            if isinstance(value, (list, tuple, set)):
                query = query.filter(field.in_(list(value)))
            else:
                query = query.filter(field == value)
        return query

    def _entity_id(self, entity: T) -> Any:
        return getattr(entity, self._pk_column.key, None)
