"""
Interfaccia per la cache delle quotazioni per collo
"""
from abc import abstractmethod
from typing import Dict, Any, Optional
from src.core.interfaces import IBaseService
from src.models.order_shipment import OrderShipment
from src.services.ecommerce.shipments.carrier_gateway import RateOption

class IShipmentQuoteService(IBaseService):

    @abstractmethod
    async def get_quotes(self, order_id: int, shipment_id: int, force_refresh: bool = False) -> Dict[str, Any]:
        """Quotazioni del collo, dalla cache se valida"""
        pass

    @abstractmethod
    async def fetch_quotes(self, order_id: int, shipment: OrderShipment, force_refresh: bool = False) -> Dict[str, Any]:
        """Come get_quotes su un collo già caricato (usato dall'acquisto con refresh)"""
        pass

    @abstractmethod
    async def get_valid_quote(self, order_id: int, shipment: OrderShipment, quote_id: str) -> Optional[RateOption]:
        """Tariffa presente nella voce di cache non scaduta per la signature corrente"""
        pass

    @abstractmethod
    async def build_quote_request(self, order_id: int, shipment: OrderShipment, require_phone: bool = False) -> Any:
        """Valida le precondizioni e costruisce l'input del vettore per il collo"""
        pass
