"""
Interfaccia per OrderShipment Service seguendo ISP
"""
from abc import abstractmethod
from typing import Dict, Any, Optional
from src.core.interfaces import IBaseService
from src.schemas.order_shipment_schema import OrderShipmentSchema, OrderShipmentUpdateSchema
from src.models.order import Order
from src.models.order_shipment import OrderShipment
from src.models.shipping_box_preset import ShippingBoxPreset

class IOrderShipmentService(IBaseService):
    """Interface per i colli di un ordine e il loro stato etichetta"""

    @abstractmethod
    async def get_order(self, order_id: int) -> Order:
        """Ordine esistente o NotFoundException"""
        pass

    @abstractmethod
    async def get_shipment(self, order_id: int, shipment_id: int) -> OrderShipment:
        """Collo dell'ordine o NotFoundException"""
        pass

    @abstractmethod
    async def list_shipments(self, order_id: int, shipment: Optional[OrderShipment] = None) -> Dict[str, Any]:
        """Colli dell'ordine con riepilogo"""
        pass

    @abstractmethod
    async def create_shipment(self, order_id: int, shipment_data: OrderShipmentSchema) -> Dict[str, Any]:
        """Aggiunge un collo all'ordine"""
        pass

    @abstractmethod
    async def update_shipment(self, order_id: int, shipment_id: int, shipment_data: OrderShipmentUpdateSchema) -> Dict[str, Any]:
        """Aggiornamento parziale del collo"""
        pass

    @abstractmethod
    async def delete_shipment(self, order_id: int, shipment_id: int) -> Dict[str, Any]:
        """Elimina il collo e ricompatta parcel_index"""
        pass

    @abstractmethod
    async def set_quote_selection(self, shipment: OrderShipment, quote_id: Optional[str]) -> OrderShipment:
        """Registra la quotazione selezionata (solo suggerimento)"""
        pass

    @abstractmethod
    async def record_purchase_attempt(self, shipment: OrderShipment, quote_id: str) -> OrderShipment:
        """Registra il tentativo di acquisto prima di chiamare il vettore"""
        pass

    @abstractmethod
    async def apply_label_outcome(self, shipment: OrderShipment, outcome: Any) -> OrderShipment:
        """Unico percorso di scrittura dell'esito etichetta"""
        pass

    @abstractmethod
    async def freeze_preset_dimensions(self, preset: ShippingBoxPreset) -> int:
        """Congela le dimensioni effettive dei colli che usano il preset"""
        pass
