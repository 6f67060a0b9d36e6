"""
Order Repository (sola lettura): proiezione minima degli ordini
"""
from typing import List
from sqlalchemy.orm import Session
from src.models.order import Order
from src.models.order_item import OrderItem
from src.repository.interfaces.order_repository_interface import IOrderRepository
from src.core.base_repository import BaseRepository
from src.core.exceptions import InfrastructureException


class OrderRepository(BaseRepository[Order, int], IOrderRepository):

    def __init__(self, session: Session):
        super().__init__(session, Order)

    def get_items(self, order_id: int) -> List[OrderItem]:
        try:
            return self._session.query(OrderItem).filter(
                OrderItem.id_order == order_id
            ).order_by(OrderItem.id_order_item).all()
        except Exception as e:
            raise InfrastructureException(f"Database error retrieving items of order {order_id}: {str(e)}")
