"""
Interfaccia per OrderShipment Repository seguendo ISP
"""
from abc import abstractmethod
from typing import List
from src.core.interfaces import IRepository
from src.models.order_shipment import OrderShipment

class IOrderShipmentRepository(IRepository[OrderShipment, int]):
    """Interface per la repository dei colli di un ordine"""

    @abstractmethod
    def get_by_order(self, order_id: int) -> List[OrderShipment]:
        """Colli dell'ordine ordinati per parcel_index"""
        pass

    @abstractmethod
    def get_for_order_or_raise(self, order_id: int, shipment_id: int) -> OrderShipment:
        """Collo appartenente all'ordine o NotFoundException"""
        pass

    @abstractmethod
    def count_by_order(self, order_id: int) -> int:
        """Numero di colli dell'ordine"""
        pass

    @abstractmethod
    def get_by_box_preset(self, preset_id: int) -> List[OrderShipment]:
        """Colli che fanno riferimento al preset"""
        pass

    @abstractmethod
    def get_awaiting_provider(self, limit: int = 50) -> List[OrderShipment]:
        """Colli pending con spedizione provider ma senza etichetta"""
        pass

    @abstractmethod
    def save_all(self, shipments: List[OrderShipment]) -> None:
        """Salva più colli in un'unica transazione"""
        pass

    @abstractmethod
    def delete_and_reindex(self, shipment: OrderShipment) -> None:
        """Elimina il collo e ricompatta i parcel_index dei restanti"""
        pass
