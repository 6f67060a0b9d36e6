"""
LabelPurchase Service: acquisto etichetta per collo
"""
import logging
from typing import Dict, Any, Optional
from src.services.interfaces.label_purchase_service_interface import ILabelPurchaseService
from src.services.interfaces.order_shipment_service_interface import IOrderShipmentService
from src.services.interfaces.shipment_quote_service_interface import IShipmentQuoteService
from src.models.order_shipment import LabelState
from src.core.exceptions import (
    ExceptionFactory,
    NoQuoteSelectedException,
    StaleQuoteException,
    ProviderRejectedException,
    ProviderUnavailableException,
    ErrorCode
)
from src.core.locks import ShipmentLockManager, get_shipment_lock_manager
from src.services.core.tool import trim_or_none
from src.services.ecommerce.shipments.carrier_gateway import (
    ICarrierGateway,
    LabelPendingAsync,
    LabelRejected,
    TransportAmbiguous,
    normalize_outcome,
)

logger = logging.getLogger(__name__)


class LabelPurchaseService(ILabelPurchaseService):
    """
    Coordina l'acquisto: guardia per collo, verifica stato, risoluzione della quotazione,
    registrazione del tentativo, chiamata al vettore e applicazione dell'esito.

    L'acquisto non viene mai ritentato in automatico: un esito ambiguo lascia
    label_state invariato e va risolto con il refresh dello stato.
    """

    def __init__(
        self,
        order_shipment_service: IOrderShipmentService,
        shipment_quote_service: IShipmentQuoteService,
        carrier_gateway: ICarrierGateway,
        lock_manager: Optional[ShipmentLockManager] = None
    ):
        self._shipment_service = order_shipment_service
        self._quote_service = shipment_quote_service
        self._gateway = carrier_gateway
        self._lock_manager = lock_manager or get_shipment_lock_manager()

    async def buy_label(
        self,
        order_id: int,
        shipment_id: int,
        quote_selected_id: Optional[str] = None,
        refresh: bool = False
    ) -> Dict[str, Any]:
        async with self._lock_manager.purchase_guard(shipment_id):
            shipment = await self._shipment_service.get_shipment(order_id, shipment_id)

            if shipment.label_state == LabelState.GENERATED.value:
                raise ExceptionFactory.shipment_already_purchased(shipment_id)
            if shipment.awaiting_provider:
                raise ExceptionFactory.label_pending_use_refresh(shipment_id)

            request = await self._quote_service.build_quote_request(order_id, shipment, require_phone=True)
            quote_id = await self._resolve_quote_id(order_id, shipment, trim_or_none(quote_selected_id), refresh)

            shipment = await self._shipment_service.record_purchase_attempt(shipment, quote_id)
            logger.info(f"Purchasing label for shipment {shipment_id} of order {order_id} with quote {quote_id}")

            outcome = await self._gateway.purchase_label(
                quote_id,
                request.ship_from,
                request.destination,
                request.parcel,
                external_reference=f"order-{order_id}-parcel-{shipment.parcel_index + 1}",
            )
            outcome = normalize_outcome(outcome)
            shipment = await self._shipment_service.apply_label_outcome(shipment, outcome)

            if isinstance(outcome, LabelRejected):
                raise ProviderRejectedException(
                    f"Label purchase rejected by carrier: {outcome.detail}",
                    ErrorCode.PROVIDER_REJECTED,
                    {
                        "shipment_id": shipment_id,
                        "detail": outcome.detail,
                        "status_code": outcome.status_code,
                        "label_state": shipment.label_state,
                    }
                )
            if isinstance(outcome, TransportAmbiguous):
                logger.warning(f"Ambiguous label purchase for shipment {shipment_id}: {outcome.detail}")
                raise ProviderUnavailableException(
                    "Label purchase outcome unknown. Refresh the label status before buying again.",
                    {
                        "shipment_id": shipment_id,
                        "detail": outcome.detail,
                        "provider_shipment_id": outcome.provider_shipment_id,
                    }
                )

            response = await self._shipment_service.list_shipments(order_id, shipment)
            response["pending_refresh"] = isinstance(outcome, LabelPendingAsync)
            response["quote_selected_id"] = quote_id
            return response

    async def validate_business_rules(self, data: Any) -> None:
        pass

    async def _resolve_quote_id(self, order_id: int, shipment, explicit_id: Optional[str], refresh: bool) -> str:
        """
        - id esplicito: deve essere nella cache valida, altrimenti StaleQuote
        - refresh senza id: tariffa più economica di una quotazione nuova
        - selezione salvata sul collo (get_quotes, update): rivalidata come l'id esplicito
        - altrimenti: NoQuoteSelected
        """
        if explicit_id:
            return await self._validated_quote_id(order_id, shipment, explicit_id)

        if refresh:
            quotes = await self._quote_service.fetch_quotes(order_id, shipment, force_refresh=True)
            rates = quotes.get("rates") or []
            if not rates:
                raise ProviderRejectedException(
                    "No rates available for this shipment.",
                    ErrorCode.NO_RATES,
                    {"shipment_id": shipment.id_order_shipment, "warning": quotes.get("warning")}
                )
            return min(rates, key=lambda rate: rate["amount_cents"])["id"]

        stored_id = trim_or_none(shipment.quote_selected_id)
        if stored_id:
            return await self._validated_quote_id(order_id, shipment, stored_id)

        raise NoQuoteSelectedException(details={"shipment_id": shipment.id_order_shipment})

    async def _validated_quote_id(self, order_id: int, shipment, quote_id: str) -> str:
        rate = await self._quote_service.get_valid_quote(order_id, shipment, quote_id)
        if rate is None:
            raise StaleQuoteException(quote_id, {"shipment_id": shipment.id_order_shipment})
        return rate.id
