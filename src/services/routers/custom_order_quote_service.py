"""
CustomOrderQuote Service: quotazioni per destinazione e collo arbitrari (senza ordine)
"""
import copy
import logging
from dataclasses import asdict
from functools import lru_cache
from typing import Dict, Any

from cachetools import TTLCache

from src.services.interfaces.custom_order_quote_service_interface import ICustomOrderQuoteService
from src.repository.interfaces.ship_from_settings_repository_interface import IShipFromSettingsRepository
from src.repository.interfaces.shipping_box_preset_repository_interface import IShippingBoxPresetRepository
from src.schemas.shipment_quote_schema import CustomOrderQuoteRequestSchema, ParcelInputSchema
from src.core.exceptions import ValidationException, ProviderRejectedException, ExceptionFactory, ErrorCode
from src.core.settings import get_easyship_settings, get_shipping_label_settings
from src.services.core.tool import digest_hex, round3
from src.services.ecommerce.shipments.carrier_gateway import (
    ICarrierGateway,
    ParcelSpec,
    NO_SHIPPING_SOLUTIONS_WARNING,
    filter_allowed_rates,
    pick_cheapest_rate,
)
from src.services.ecommerce.shipments.easyship_mapper import EasyshipMapper
from src.services.ecommerce.shipments.shipping_context import (
    build_ship_from_spec,
    build_destination_spec,
    rate_signature_payload,
)

logger = logging.getLogger(__name__)


@lru_cache()
def get_adhoc_quote_cache() -> TTLCache:
    """Memo di processo delle quotazioni ad-hoc (chiave: SHA-256 della richiesta canonica)"""
    settings = get_shipping_label_settings()
    return TTLCache(maxsize=settings.adhoc_quote_cache_size, ttl=settings.adhoc_quote_cache_ttl_seconds)


class CustomOrderQuoteService(ICustomOrderQuoteService):

    def __init__(
        self,
        ship_from_settings_repository: IShipFromSettingsRepository,
        shipping_box_preset_repository: IShippingBoxPresetRepository,
        carrier_gateway: ICarrierGateway
    ):
        self._ship_from_repository = ship_from_settings_repository
        self._preset_repository = shipping_box_preset_repository
        self._gateway = carrier_gateway
        self._mapper = EasyshipMapper()
        self._cache = get_adhoc_quote_cache()

    async def get_adhoc_quotes(self, request: CustomOrderQuoteRequestSchema) -> Dict[str, Any]:
        ship_from = build_ship_from_spec(self._ship_from_repository.get_settings())
        destination = build_destination_spec(request.destination.model_dump())
        parcel = self._build_parcel(request.parcel)
        items = self._mapper.sanitize_items(request.items)
        allowed_carriers = get_easyship_settings().allowed_carriers

        signature_payload = rate_signature_payload(None, destination, parcel, allowed_carriers, items)
        signature_payload["origin"] = asdict(ship_from)
        signature_payload["destination"] = asdict(destination)
        cache_key = digest_hex(signature_payload)

        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug("Ad-hoc quote memo hit")
            response = copy.deepcopy(cached)
            response["cached"] = True
            return response

        result = await self._gateway.quote_rates(ship_from, destination, parcel, items)
        hints = result.raw_response_hints.to_dict() if result.raw_response_hints else None

        if not result.rates:
            return {
                "rates": [],
                "cheapest": None,
                "cached": False,
                "warning": result.warning or NO_SHIPPING_SOLUTIONS_WARNING,
                "raw_response_hints": hints,
            }

        rates = sorted(filter_allowed_rates(result.rates, allowed_carriers), key=lambda rate: rate.amount_cents)
        if not rates:
            raise ProviderRejectedException(
                "No supported carrier quotes found for this parcel.",
                ErrorCode.NO_RATES,
                {"allowed_carriers": allowed_carriers, "raw_response_hints": hints}
            )

        cheapest = pick_cheapest_rate(rates)
        response = {
            "rates": [rate.to_dict() for rate in rates],
            "cheapest": cheapest.to_dict() if cheapest else None,
            "cached": False,
            "warning": result.warning,
            "raw_response_hints": hints,
        }
        self._cache[cache_key] = copy.deepcopy(response)
        return response

    async def validate_business_rules(self, data: Any) -> None:
        pass

    def _build_parcel(self, parcel: ParcelInputSchema) -> ParcelSpec:
        weight = parcel.weight_lb
        if parcel.id_box_preset is not None:
            preset = self._preset_repository.get_by_id(parcel.id_box_preset)
            if preset is None:
                raise ValidationException(
                    f"Unknown box preset {parcel.id_box_preset}",
                    ErrorCode.VALIDATION_ERROR,
                    {"field": "id_box_preset", "value": parcel.id_box_preset}
                )
            dims = (preset.length_in, preset.width_in, preset.height_in)
            if weight is None:
                weight = preset.default_weight_lb
        else:
            dims = (parcel.length_in, parcel.width_in, parcel.height_in)

        if any(value is None or value <= 0 for value in dims) or weight is None or weight <= 0:
            raise ExceptionFactory.parcel_incomplete()
        return ParcelSpec(
            length_in=round3(dims[0]),
            width_in=round3(dims[1]),
            height_in=round3(dims[2]),
            weight_lb=round3(weight),
        )
