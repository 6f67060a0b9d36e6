"""
Interfaccia per la riconciliazione dello stato etichetta
"""
from abc import abstractmethod
from typing import Dict, Any
from src.core.interfaces import IBaseService
from src.models.order_shipment import OrderShipment

class ILabelStatusService(IBaseService):

    @abstractmethod
    async def refresh_label_status(self, order_id: int, shipment_id: int) -> Dict[str, Any]:
        """Interroga il vettore e applica l'esito"""
        pass

    @abstractmethod
    async def reconcile_shipment(self, shipment: OrderShipment) -> bool:
        """Riconcilia un collo in attesa; True se ha lasciato lo stato pending"""
        pass
