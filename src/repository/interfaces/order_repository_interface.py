"""
Interfaccia per Order Repository (sola lettura)
"""
from abc import abstractmethod
from typing import List
from src.core.interfaces import IRepository
from src.models.order import Order
from src.models.order_item import OrderItem

class IOrderRepository(IRepository[Order, int]):
    """Interface per la lettura degli ordini"""

    @abstractmethod
    def get_items(self, order_id: int) -> List[OrderItem]:
        """Righe dell'ordine usate come articoli dichiarati"""
        pass
