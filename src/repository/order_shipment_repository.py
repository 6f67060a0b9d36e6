"""
OrderShipment Repository seguendo SOLID
"""
from typing import List
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from src.models.order_shipment import OrderShipment, LabelState
from src.repository.interfaces.order_shipment_repository_interface import IOrderShipmentRepository
from src.core.base_repository import BaseRepository
from src.core.exceptions import (
    InfrastructureException,
    ConcurrentModificationException,
    ExceptionFactory,
)


class OrderShipmentRepository(BaseRepository[OrderShipment, int], IOrderShipmentRepository):
    """Repository dei colli con aggiornamenti protetti da version_id_col"""

    def __init__(self, session: Session):
        super().__init__(session, OrderShipment)

    def get_by_order(self, order_id: int) -> List[OrderShipment]:
        try:
            return self._session.query(OrderShipment).filter(
                OrderShipment.id_order == order_id
            ).order_by(OrderShipment.parcel_index, OrderShipment.id_order_shipment).all()
        except Exception as e:
            raise InfrastructureException(f"Database error retrieving shipments of order {order_id}: {str(e)}")

    def get_for_order_or_raise(self, order_id: int, shipment_id: int) -> OrderShipment:
        try:
            shipment = self._session.query(OrderShipment).filter(
                OrderShipment.id_order_shipment == shipment_id,
                OrderShipment.id_order == order_id
            ).first()
        except Exception as e:
            raise InfrastructureException(f"Database error retrieving shipment {shipment_id}: {str(e)}")
        if shipment is None:
            raise ExceptionFactory.shipment_not_found(shipment_id)
        return shipment

    def count_by_order(self, order_id: int) -> int:
        return self.get_count(id_order=order_id)

    def get_by_box_preset(self, preset_id: int) -> List[OrderShipment]:
        try:
            return self._session.query(OrderShipment).filter(
                OrderShipment.id_box_preset == preset_id
            ).all()
        except Exception as e:
            raise InfrastructureException(f"Database error retrieving shipments of preset {preset_id}: {str(e)}")

    def get_awaiting_provider(self, limit: int = 50) -> List[OrderShipment]:
        """Colli da riconciliare, i meno recenti per primi"""
        try:
            return self._session.query(OrderShipment).filter(
                OrderShipment.label_state == LabelState.PENDING.value,
                OrderShipment.easyship_shipment_id.isnot(None),
                OrderShipment.easyship_label_id.is_(None)
            ).order_by(OrderShipment.updated_at, OrderShipment.id_order_shipment).limit(limit).all()
        except Exception as e:
            raise InfrastructureException(f"Database error retrieving shipments awaiting provider: {str(e)}")

    def save_all(self, shipments: List[OrderShipment]) -> None:
        try:
            for shipment in shipments:
                self._session.add(shipment)
            self._session.commit()
        except StaleDataError:
            self._session.rollback()
            raise ConcurrentModificationException("OrderShipment", None)
        except Exception as e:
            self._session.rollback()
            raise InfrastructureException(f"Database error saving shipments: {str(e)}")

    def delete_and_reindex(self, shipment: OrderShipment) -> None:
        """
        Elimina il collo e riassegna parcel_index 0..n-1 ai restanti.

        Gli indici vengono prima spostati in un intervallo negativo per non violare
        il vincolo UNIQUE(id_order, parcel_index) durante il flush.
        """
        order_id = shipment.id_order
        try:
            self._session.delete(shipment)
            self._session.flush()
            remaining = self._session.query(OrderShipment).filter(
                OrderShipment.id_order == order_id
            ).order_by(OrderShipment.parcel_index, OrderShipment.id_order_shipment).all()
            for position, other in enumerate(remaining):
                other.parcel_index = -(position + 1)
            self._session.flush()
            for position, other in enumerate(remaining):
                other.parcel_index = position
            self._session.commit()
        except StaleDataError:
            self._session.rollback()
            raise ConcurrentModificationException("OrderShipment", shipment.id_order_shipment)
        except Exception as e:
            self._session.rollback()
            raise InfrastructureException(f"Database error deleting shipment: {str(e)}")
