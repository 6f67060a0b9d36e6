"""
LabelStatus Service: riconciliazione dello stato etichetta con il vettore
"""
import logging
from typing import Dict, Any, Optional
from src.services.interfaces.label_status_service_interface import ILabelStatusService
from src.services.interfaces.order_shipment_service_interface import IOrderShipmentService
from src.models.order_shipment import OrderShipment, LabelState
from src.core.locks import ShipmentLockManager, get_shipment_lock_manager
from src.services.ecommerce.shipments.carrier_gateway import ICarrierGateway, LabelPendingAsync, normalize_outcome

logger = logging.getLogger(__name__)


class LabelStatusService(ILabelStatusService):
    """LabelStatus Service seguendo SRP e DIP"""

    def __init__(
        self,
        order_shipment_service: IOrderShipmentService,
        carrier_gateway: ICarrierGateway,
        lock_manager: Optional[ShipmentLockManager] = None
    ):
        self._shipment_service = order_shipment_service
        self._gateway = carrier_gateway
        self._lock_manager = lock_manager or get_shipment_lock_manager()

    async def refresh_label_status(self, order_id: int, shipment_id: int) -> Dict[str, Any]:
        """
        Aggiorna il collo con lo stato del vettore.

        Senza id spedizione del provider, o con etichetta già completa, non chiama il vettore.
        Un rifiuto non viene sollevato: il collo passa a failed e la risposta lo riporta.
        Un errore di trasporto solleva ProviderUnavailableException e lascia lo stato invariato.
        """
        async with self._lock_manager.purchase_guard(shipment_id):
            shipment = await self._shipment_service.get_shipment(order_id, shipment_id)

            if not shipment.easyship_shipment_id or shipment.is_label_complete:
                response = await self._shipment_service.list_shipments(order_id, shipment)
                response["refreshed"] = False
                response["pending_refresh"] = False
                return response

            shipment, pending = await self._apply_provider_status(shipment)
            response = await self._shipment_service.list_shipments(order_id, shipment)
            response["refreshed"] = not pending
            response["pending_refresh"] = pending
            return response

    async def reconcile_shipment(self, shipment: OrderShipment) -> bool:
        async with self._lock_manager.purchase_guard(shipment.id_order_shipment):
            if not shipment.awaiting_provider:
                return shipment.label_state != LabelState.PENDING.value
            shipment, _ = await self._apply_provider_status(shipment)
            return shipment.label_state != LabelState.PENDING.value

    async def validate_business_rules(self, data: Any) -> None:
        pass

    async def _apply_provider_status(self, shipment: OrderShipment):
        outcome = normalize_outcome(await self._gateway.get_label_status(shipment.easyship_shipment_id))
        shipment = await self._shipment_service.apply_label_outcome(shipment, outcome)
        pending = isinstance(outcome, LabelPendingAsync)
        logger.info(
            f"Label status of shipment {shipment.id_order_shipment}: {shipment.label_state}"
            f"{' (still pending)' if pending else ''}"
        )
        return shipment, pending
