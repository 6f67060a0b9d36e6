import logging
from typing import List, Optional

from src.core.exceptions import ProviderRejectedException, ProviderUnavailableException
from src.models.order_shipment import LabelState
from src.services.ecommerce.shipments.carrier_gateway import (
    ICarrierGateway,
    AddressSpec,
    ParcelSpec,
    RateItem,
    RateQuoteResult,
    RawResponseHints,
    PurchaseOutcome,
    LabelStatusOutcome,
    LabelConfirmed,
    LabelPendingAsync,
    LabelRejected,
    TransportAmbiguous,
    NO_SHIPPING_SOLUTIONS_WARNING,
)
from src.services.ecommerce.shipments.easyship_client import (
    EasyshipClient,
    EasyshipClientError,
    EasyshipConfigurationError,
    EasyshipHttpError,
)
from src.services.ecommerce.shipments.easyship_mapper import EasyshipMapper, NO_SHIPPING_SOLUTIONS_DETAIL

logger = logging.getLogger(__name__)


class EasyshipCarrierGateway(ICarrierGateway):
    """ICarrierGateway backed by the Easyship public API"""

    def __init__(self, client: Optional[EasyshipClient] = None, mapper: Optional[EasyshipMapper] = None):
        self.client = client or EasyshipClient()
        self.mapper = mapper or EasyshipMapper()

    async def quote_rates(
        self,
        ship_from: AddressSpec,
        destination: AddressSpec,
        parcel: ParcelSpec,
        items: Optional[List[RateItem]] = None
    ) -> RateQuoteResult:
        payload = self.mapper.build_rates_payload(ship_from, destination, parcel, items)
        try:
            data = await self.client.get_rates(payload)
        except EasyshipHttpError as e:
            if NO_SHIPPING_SOLUTIONS_DETAIL.lower() in (e.message or "").lower():
                logger.info("Easyship rates returned no shipping solutions")
                return RateQuoteResult(
                    rates=[],
                    warning=NO_SHIPPING_SOLUTIONS_WARNING,
                    raw_response_hints=RawResponseHints(status_code=e.status_code, has_error=True, error_code=e.error_code),
                )
            details = {"status_code": e.status_code, "error_code": e.error_code}
            if e.is_server_error:
                raise ProviderUnavailableException(f"Easyship rates unavailable: {e.message}", details)
            raise ProviderRejectedException(f"Easyship rejected the rates request: {e.message}", details=details)
        except EasyshipClientError as e:
            raise ProviderUnavailableException(str(e))

        rates = self.mapper.parse_rates(data)
        warning = None
        if not rates:
            warning = NO_SHIPPING_SOLUTIONS_WARNING
        return RateQuoteResult(
            rates=rates,
            warning=warning,
            raw_response_hints=RawResponseHints(status_code=200, has_error=False),
        )

    async def purchase_label(
        self,
        quote_id: str,
        ship_from: AddressSpec,
        destination: AddressSpec,
        parcel: ParcelSpec,
        external_reference: Optional[str] = None
    ) -> PurchaseOutcome:
        payload = self.mapper.build_shipment_payload(quote_id, ship_from, destination, parcel, external_reference)

        # 1. Creazione spedizione
        try:
            created = await self.client.create_shipment(payload)
        except EasyshipConfigurationError as e:
            # Nessuna richiesta inviata: non è un esito ambiguo
            raise ProviderUnavailableException(str(e), {"reason": "configuration"})
        except EasyshipHttpError as e:
            if e.is_server_error:
                return TransportAmbiguous(detail=f"Easyship create shipment failed ({e.status_code}): {e.message}")
            return LabelRejected(detail=e.message, status_code=e.status_code)
        except EasyshipClientError as e:
            return TransportAmbiguous(detail=str(e))

        snapshot = self.mapper.normalize_shipment_snapshot(created)
        provider_shipment_id = snapshot["label"].provider_shipment_id
        if not provider_shipment_id:
            return TransportAmbiguous(detail="Easyship create shipment response missing shipment id")

        # 2. Acquisto etichetta
        try:
            purchased = await self.client.purchase_label(provider_shipment_id, quote_id)
        except EasyshipHttpError as e:
            if e.is_server_error:
                return TransportAmbiguous(
                    detail=f"Easyship purchase failed ({e.status_code}): {e.message}",
                    provider_shipment_id=provider_shipment_id,
                )
            return LabelRejected(
                detail=e.message,
                provider_shipment_id=provider_shipment_id,
                status_code=e.status_code,
            )
        except EasyshipClientError as e:
            return TransportAmbiguous(detail=str(e), provider_shipment_id=provider_shipment_id)

        return self._outcome_from_snapshot(purchased, provider_shipment_id)

    async def get_label_status(self, provider_shipment_id: str) -> LabelStatusOutcome:
        try:
            data = await self.client.get_shipment(provider_shipment_id)
        except EasyshipHttpError as e:
            if e.status_code == 404:
                return LabelRejected(
                    detail=f"Easyship shipment {provider_shipment_id} not found",
                    provider_shipment_id=provider_shipment_id,
                    status_code=404,
                )
            raise ProviderUnavailableException(
                f"Easyship shipment lookup failed: {e.message}",
                {"status_code": e.status_code, "provider_shipment_id": provider_shipment_id}
            )
        except EasyshipClientError as e:
            raise ProviderUnavailableException(str(e), {"provider_shipment_id": provider_shipment_id})

        return self._outcome_from_snapshot(data, provider_shipment_id)

    def _outcome_from_snapshot(self, payload, provider_shipment_id: str) -> LabelStatusOutcome:
        snapshot = self.mapper.normalize_shipment_snapshot(payload)
        label = snapshot["label"]
        if not label.provider_shipment_id:
            label.provider_shipment_id = provider_shipment_id

        if snapshot["label_state"] == LabelState.GENERATED.value:
            return LabelConfirmed(label=label)
        if snapshot["label_state"] == LabelState.FAILED.value:
            return LabelRejected(
                detail=f"Easyship label status: {snapshot['status'] or 'failed'}",
                provider_shipment_id=label.provider_shipment_id,
            )
        return LabelPendingAsync(provider_shipment_id=label.provider_shipment_id)
