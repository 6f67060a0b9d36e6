"""
ShipmentQuote Service: cache delle quotazioni per collo.

Una voce per collo, valida per QUOTE_CACHE_TTL_SECONDS e solo se la signature
della richiesta (ordine, destinazione, collo, vettori ammessi) non è cambiata.
Un errore del vettore non tocca la voce esistente.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Any, List, Optional

import orjson

from src.services.interfaces.shipment_quote_service_interface import IShipmentQuoteService
from src.services.interfaces.order_shipment_service_interface import IOrderShipmentService
from src.repository.interfaces.order_repository_interface import IOrderRepository
from src.repository.interfaces.ship_from_settings_repository_interface import IShipFromSettingsRepository
from src.repository.interfaces.order_rate_quote_repository_interface import IOrderRateQuoteRepository
from src.models.order_shipment import OrderShipment, LabelState
from src.core.exceptions import ProviderRejectedException, ConcurrentModificationException, ErrorCode
from src.core.locks import ShipmentLockManager, get_shipment_lock_manager
from src.core.settings import get_easyship_settings, get_shipping_label_settings
from src.services.core.tool import digest_hex, utc_now
from src.services.ecommerce.shipments.carrier_gateway import (
    ICarrierGateway,
    AddressSpec,
    ParcelSpec,
    RateItem,
    RateOption,
    NO_SHIPPING_SOLUTIONS_WARNING,
    filter_allowed_rates,
    pick_cheapest_rate,
)
from src.services.ecommerce.shipments.easyship_mapper import EasyshipMapper
from src.services.ecommerce.shipments.shipping_context import (
    build_ship_from_spec,
    build_destination_spec,
    build_parcel_spec,
    order_destination_values,
    order_rate_items,
    rate_signature_payload,
)

logger = logging.getLogger(__name__)


@dataclass
class QuoteRequest:
    """Input del vettore per un collo, con la signature della richiesta"""
    ship_from: AddressSpec
    destination: AddressSpec
    parcel: ParcelSpec
    items: List[RateItem]
    signature: str


def dump_rates(rates: List[RateOption]) -> str:
    return orjson.dumps([rate.to_dict() for rate in rates]).decode()


def _purchase_recorded(shipment: OrderShipment) -> bool:
    """Etichetta emessa o in attesa del vettore: quote_selected_id è il record del tentativo"""
    return shipment.label_state == LabelState.GENERATED.value or shipment.awaiting_provider


def load_rates(rates_json: Optional[str]) -> List[RateOption]:
    try:
        raw = orjson.loads(rates_json or "[]")
    except orjson.JSONDecodeError:
        logger.warning("Discarding unreadable cached rates")
        return []
    if not isinstance(raw, list):
        return []
    return [rate for rate in (RateOption.from_dict(item) for item in raw) if rate is not None]


class ShipmentQuoteService(IShipmentQuoteService):
    """ShipmentQuote Service seguendo SRP e DIP"""

    def __init__(
        self,
        order_shipment_service: IOrderShipmentService,
        order_repository: IOrderRepository,
        ship_from_settings_repository: IShipFromSettingsRepository,
        order_rate_quote_repository: IOrderRateQuoteRepository,
        carrier_gateway: ICarrierGateway,
        lock_manager: Optional[ShipmentLockManager] = None
    ):
        self._shipment_service = order_shipment_service
        self._order_repository = order_repository
        self._ship_from_repository = ship_from_settings_repository
        self._quote_repository = order_rate_quote_repository
        self._gateway = carrier_gateway
        self._lock_manager = lock_manager or get_shipment_lock_manager()
        self._mapper = EasyshipMapper()
        self.settings = get_shipping_label_settings()

    async def get_quotes(self, order_id: int, shipment_id: int, force_refresh: bool = False) -> Dict[str, Any]:
        shipment = await self._shipment_service.get_shipment(order_id, shipment_id)
        return await self.fetch_quotes(order_id, shipment, force_refresh)

    async def fetch_quotes(self, order_id: int, shipment: OrderShipment, force_refresh: bool = False) -> Dict[str, Any]:
        request = await self.build_quote_request(order_id, shipment)
        shipment_id = shipment.id_order_shipment

        if not force_refresh:
            entry = self._quote_repository.get_by_shipment(shipment_id)
            if entry is not None and entry.signature == request.signature and entry.expires_at > utc_now():
                rates = load_rates(entry.rates_json)
                logger.debug(f"Quote cache hit for shipment {shipment_id}")
                selected_id = await self._select_default(shipment, rates)
                return await self._build_response(
                    order_id, shipment, rates, True, entry.expires_at, selected_id, entry.warning, None
                )

        # Chiamanti concorrenti sullo stesso collo condividono la chiamata al vettore
        fresh = await self._lock_manager.coalesce(
            f"quotes:{shipment_id}:{request.signature}",
            lambda: self._refresh_quotes(order_id, shipment, request)
        )
        return await self._build_response(
            order_id,
            shipment,
            fresh["rates"],
            False,
            fresh["expires_at"],
            fresh["quote_selected_id"],
            fresh["warning"],
            fresh["raw_response_hints"],
        )

    async def get_valid_quote(self, order_id: int, shipment: OrderShipment, quote_id: str) -> Optional[RateOption]:
        if not quote_id:
            return None
        request = await self.build_quote_request(order_id, shipment)
        entry = self._quote_repository.get_by_shipment(shipment.id_order_shipment)
        if entry is None or entry.signature != request.signature or entry.expires_at <= utc_now():
            return None
        for rate in load_rates(entry.rates_json):
            if rate.id == quote_id:
                return rate
        return None

    async def build_quote_request(self, order_id: int, shipment: OrderShipment, require_phone: bool = False) -> QuoteRequest:
        """Valida ship-from, destinazione e collo (in quest'ordine) e calcola la signature"""
        order = await self._shipment_service.get_order(order_id)
        ship_from = build_ship_from_spec(self._ship_from_repository.get_settings())
        destination = build_destination_spec(order_destination_values(order), require_phone=require_phone)
        parcel = build_parcel_spec(shipment)
        items = self._mapper.sanitize_items(order_rate_items(self._order_repository.get_items(order_id)))
        allowed_carriers = get_easyship_settings().allowed_carriers
        signature = digest_hex(rate_signature_payload(order_id, destination, parcel, allowed_carriers))
        return QuoteRequest(ship_from, destination, parcel, items, signature)

    async def validate_business_rules(self, data: Any) -> None:
        pass

    async def _refresh_quotes(self, order_id: int, shipment: OrderShipment, request: QuoteRequest) -> Dict[str, Any]:
        result = await self._gateway.quote_rates(request.ship_from, request.destination, request.parcel, request.items)
        hints = result.raw_response_hints.to_dict() if result.raw_response_hints else None

        if not result.rates:
            # Nessun servizio disponibile: non è un errore e non viene messo in cache
            logger.info(f"No shipping solutions for shipment {shipment.id_order_shipment}")
            await self._store_selection(shipment, None)
            return {
                "rates": [],
                "expires_at": None,
                "quote_selected_id": shipment.quote_selected_id if _purchase_recorded(shipment) else None,
                "warning": result.warning or NO_SHIPPING_SOLUTIONS_WARNING,
                "raw_response_hints": hints,
            }

        allowed_carriers = get_easyship_settings().allowed_carriers
        rates = sorted(filter_allowed_rates(result.rates, allowed_carriers), key=lambda rate: rate.amount_cents)
        if not rates:
            raise ProviderRejectedException(
                "No supported carrier quotes found for this parcel.",
                ErrorCode.NO_RATES,
                {"allowed_carriers": allowed_carriers, "raw_response_hints": hints}
            )

        expires_at = utc_now() + timedelta(seconds=self.settings.quote_cache_ttl_seconds)
        self._quote_repository.upsert(
            shipment.id_order_shipment,
            order_id,
            request.signature,
            dump_rates(rates),
            result.warning,
            expires_at,
        )
        logger.info(
            f"Cached {len(rates)} rate(s) for shipment {shipment.id_order_shipment} "
            f"({len(result.rates) - len(rates)} filtered out)"
        )
        selected_id = await self._select_default(shipment, rates)
        return {
            "rates": rates,
            "expires_at": expires_at,
            "quote_selected_id": selected_id,
            "warning": result.warning,
            "raw_response_hints": hints,
        }

    async def _select_default(self, shipment: OrderShipment, rates: List[RateOption]) -> Optional[str]:
        """Mantiene la selezione se ancora quotata, altrimenti la tariffa più economica"""
        if _purchase_recorded(shipment):
            return shipment.quote_selected_id
        rate_ids = {rate.id for rate in rates}
        if shipment.quote_selected_id in rate_ids:
            return shipment.quote_selected_id
        cheapest = pick_cheapest_rate(rates)
        selected_id = cheapest.id if cheapest else None
        await self._store_selection(shipment, selected_id)
        return selected_id

    async def _store_selection(self, shipment: OrderShipment, quote_id: Optional[str]) -> None:
        if _purchase_recorded(shipment):
            return
        try:
            await self._shipment_service.set_quote_selection(shipment, quote_id)
        except ConcurrentModificationException:
            # La selezione è solo un suggerimento: un'altra richiesta l'ha già aggiornata
            logger.warning(f"Quote selection of shipment {shipment.id_order_shipment} changed concurrently")

    async def _build_response(
        self,
        order_id: int,
        shipment: OrderShipment,
        rates: List[RateOption],
        cached: bool,
        expires_at,
        quote_selected_id: Optional[str],
        warning: Optional[str],
        raw_response_hints: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        response = await self._shipment_service.list_shipments(order_id, shipment)
        response.update({
            "rates": [rate.to_dict() for rate in rates],
            "cached": cached,
            "expires_at": expires_at,
            "quote_selected_id": quote_selected_id,
            "warning": warning,
            "raw_response_hints": raw_response_hints,
        })
        return response
