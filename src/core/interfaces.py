"""
Contratti base di repository e service
"""
from abc import ABC, abstractmethod
from typing import Generic, TypeVar, Optional, List, Any

T = TypeVar('T')
K = TypeVar('K')

class IRepository(Generic[T, K], ABC):
    """Operazioni per chiave primaria comuni a tutti i repository"""

    @abstractmethod
    def get_by_id(self, id: K) -> Optional[T]:
        pass

    @abstractmethod
    def get_by_id_or_raise(self, id: K) -> T:
        """Come get_by_id ma solleva NotFoundException"""
        pass

    @abstractmethod
    def get_all(self, **filters) -> List[T]:
        pass

    @abstractmethod
    def create(self, entity: T) -> T:
        pass

    @abstractmethod
    def update(self, entity: T) -> T:
        """Salva le modifiche; un conflitto di versione solleva ConcurrentModificationException"""
        pass

    @abstractmethod
    def delete(self, id: K) -> bool:
        pass

class IBaseService(ABC):
    """Interface base per i servizi"""

    @abstractmethod
    async def validate_business_rules(self, data: Any) -> None:
        """Valida le regole business"""
        pass
