"""
OrderShipment Service: colli di un ordine, dimensioni e stato etichetta
"""
import logging
from typing import Dict, Any, List, Optional
from src.services.interfaces.order_shipment_service_interface import IOrderShipmentService
from src.repository.interfaces.order_repository_interface import IOrderRepository
from src.repository.interfaces.order_shipment_repository_interface import IOrderShipmentRepository
from src.repository.interfaces.shipping_box_preset_repository_interface import IShippingBoxPresetRepository
from src.repository.interfaces.order_rate_quote_repository_interface import IOrderRateQuoteRepository
from src.schemas.order_shipment_schema import OrderShipmentSchema, OrderShipmentUpdateSchema
from src.models.order import Order
from src.models.order_shipment import OrderShipment, LabelState, DimensionSource
from src.models.shipping_box_preset import ShippingBoxPreset
from src.core.exceptions import ValidationException, ExceptionFactory, ErrorCode
from src.core.locks import ShipmentLockManager, get_shipment_lock_manager
from src.services.core.tool import round3, safe_float, trim_or_none, utc_now
from src.services.ecommerce.shipments.carrier_gateway import (
    LabelConfirmed,
    LabelPendingAsync,
    LabelRejected,
    TransportAmbiguous,
    normalize_outcome,
)

logger = logging.getLogger(__name__)

CUSTOM_DIMENSION_FIELDS = ("custom_length_in", "custom_width_in", "custom_height_in")


def _positive(value: Any, field_name: str) -> float:
    number = safe_float(value, None)
    if number is None or number <= 0:
        raise ValidationException(
            f"{field_name} must be a positive number",
            ErrorCode.VALIDATION_ERROR,
            {"field": field_name}
        )
    return round3(number)


class OrderShipmentService(IOrderShipmentService):
    """OrderShipment Service seguendo SRP e DIP"""

    def __init__(
        self,
        order_shipment_repository: IOrderShipmentRepository,
        order_repository: IOrderRepository,
        shipping_box_preset_repository: IShippingBoxPresetRepository,
        order_rate_quote_repository: IOrderRateQuoteRepository,
        lock_manager: Optional[ShipmentLockManager] = None
    ):
        self._shipment_repository = order_shipment_repository
        self._order_repository = order_repository
        self._preset_repository = shipping_box_preset_repository
        self._quote_repository = order_rate_quote_repository
        self._lock_manager = lock_manager or get_shipment_lock_manager()

    async def get_order(self, order_id: int) -> Order:
        order = self._order_repository.get_by_id(order_id)
        if order is None:
            raise ExceptionFactory.order_not_found(order_id)
        return order

    async def get_shipment(self, order_id: int, shipment_id: int) -> OrderShipment:
        await self.get_order(order_id)
        return self._shipment_repository.get_for_order_or_raise(order_id, shipment_id)

    async def list_shipments(self, order_id: int, shipment: Optional[OrderShipment] = None) -> Dict[str, Any]:
        """Colli ordinati per parcel_index con il totale delle etichette generate"""
        await self.get_order(order_id)
        shipments = self._shipment_repository.get_by_order(order_id)
        generated = [item for item in shipments if item.label_state == LabelState.GENERATED.value]
        result = {
            "id_order": order_id,
            "shipments": shipments,
            "summary": {
                "shipment_count": len(shipments),
                "generated_count": len(generated),
                "actual_label_total_cents": sum(item.label_cost_amount_cents or 0 for item in generated),
            },
        }
        if shipment is not None:
            result["shipment"] = shipment
        return result

    async def create_shipment(self, order_id: int, shipment_data: OrderShipmentSchema) -> Dict[str, Any]:
        """
        Crea un collo con parcel_index = numero di colli esistenti.

        La fonte dimensioni è il preset (id_box_preset) oppure le tre misure custom;
        il peso, se omesso, viene preso dal default_weight_lb del preset.
        """
        await self.get_order(order_id)
        data = shipment_data.model_dump()
        has_custom = any(data.get(field_name) is not None for field_name in CUSTOM_DIMENSION_FIELDS)
        preset_id = data.get("id_box_preset")

        if has_custom and preset_id is not None:
            raise ValidationException(
                "Provide either id_box_preset or custom dimensions, not both",
                ErrorCode.VALIDATION_ERROR
            )
        if not has_custom and preset_id is None:
            raise ValidationException(
                "id_box_preset or custom dimensions are required",
                ErrorCode.REQUIRED_FIELD_MISSING
            )

        now = utc_now()
        shipment = OrderShipment(
            id_order=order_id,
            parcel_index=self._shipment_repository.count_by_order(order_id),
            label_state=LabelState.PENDING.value,
            label_currency="USD",
            created_at=now,
            updated_at=now,
        )

        weight = data.get("weight_lb")
        if has_custom:
            self._apply_custom_dimensions(shipment, data)
        else:
            preset = self._resolve_preset(preset_id)
            self._apply_preset(shipment, preset)
            if weight is None:
                weight = preset.default_weight_lb
        shipment.weight_lb = _positive(weight, "weight_lb")

        shipment = self._shipment_repository.create(shipment)
        logger.info(f"Created shipment {shipment.id_order_shipment} for order {order_id}")
        return await self.list_shipments(order_id, shipment)

    async def update_shipment(self, order_id: int, shipment_id: int, shipment_data: OrderShipmentUpdateSchema) -> Dict[str, Any]:
        shipment = await self.get_shipment(order_id, shipment_id)
        data = shipment_data.model_dump(exclude_unset=True)

        touches_parcel = any(
            data.get(field_name) is not None
            for field_name in ("id_box_preset", "dimension_source", "weight_lb") + CUSTOM_DIMENSION_FIELDS
        )
        if touches_parcel and shipment.label_state == LabelState.GENERATED.value:
            raise ExceptionFactory.shipment_locked(shipment_id, "edit")
        if touches_parcel and self._lock_manager.is_locked(shipment_id):
            raise ExceptionFactory.purchase_in_progress(shipment_id)
        if "quote_selected_id" in data and shipment.label_state == LabelState.GENERATED.value:
            # Sul collo acquistato la selezione è il record della quotazione usata
            raise ExceptionFactory.shipment_locked(shipment_id, "change the quote of")

        has_custom = any(data.get(field_name) is not None for field_name in CUSTOM_DIMENSION_FIELDS)
        if has_custom and data.get("id_box_preset") is not None:
            raise ValidationException(
                "Provide either id_box_preset or custom dimensions, not both",
                ErrorCode.VALIDATION_ERROR
            )

        source = data.get("dimension_source")
        source = source.value if isinstance(source, DimensionSource) else source

        if data.get("id_box_preset") is not None:
            self._apply_preset(shipment, self._resolve_preset(data["id_box_preset"]))
        elif has_custom:
            self._apply_custom_dimensions(shipment, data)
        elif source == DimensionSource.CUSTOM.value:
            # Ritorno alle misure custom già salvate
            if any(getattr(shipment, field_name) is None for field_name in CUSTOM_DIMENSION_FIELDS):
                raise ValidationException(
                    "Shipment has no stored custom dimensions",
                    ErrorCode.REQUIRED_FIELD_MISSING,
                    {"fields": list(CUSTOM_DIMENSION_FIELDS)}
                )
            shipment.dimension_source = DimensionSource.CUSTOM.value
        elif source == DimensionSource.PRESET.value:
            if shipment.id_box_preset is None:
                raise ValidationException(
                    "id_box_preset is required to use preset dimensions",
                    ErrorCode.REQUIRED_FIELD_MISSING,
                    {"field": "id_box_preset"}
                )
            self._apply_preset(shipment, self._resolve_preset(shipment.id_box_preset))

        if data.get("weight_lb") is not None:
            shipment.weight_lb = _positive(data["weight_lb"], "weight_lb")

        if touches_parcel:
            shipment.clear_frozen_dimensions()
            shipment.quote_selected_id = None
            if shipment.label_state != LabelState.FAILED.value:
                # Un collo failed conserva il motivo del rifiuto fino al prossimo esito del vettore
                shipment.error_message = None

        if "quote_selected_id" in data:
            shipment.quote_selected_id = trim_or_none(data["quote_selected_id"])

        shipment.updated_at = utc_now()
        shipment = self._shipment_repository.update(shipment)
        if touches_parcel:
            self._quote_repository.delete_by_shipment(shipment_id)
        return await self.list_shipments(order_id, shipment)

    async def delete_shipment(self, order_id: int, shipment_id: int) -> Dict[str, Any]:
        shipment = await self.get_shipment(order_id, shipment_id)
        if shipment.label_state == LabelState.GENERATED.value:
            raise ExceptionFactory.shipment_locked(shipment_id, "delete")
        if self._lock_manager.is_locked(shipment_id):
            raise ExceptionFactory.purchase_in_progress(shipment_id)

        self._quote_repository.delete_by_shipment(shipment_id)
        self._shipment_repository.delete_and_reindex(shipment)
        logger.info(f"Deleted shipment {shipment_id} of order {order_id}")
        return await self.list_shipments(order_id)

    async def set_quote_selection(self, shipment: OrderShipment, quote_id: Optional[str]) -> OrderShipment:
        if shipment.quote_selected_id == quote_id:
            return shipment
        shipment.quote_selected_id = quote_id
        shipment.updated_at = utc_now()
        return self._shipment_repository.update(shipment)

    async def record_purchase_attempt(self, shipment: OrderShipment, quote_id: str) -> OrderShipment:
        """
        Registra solo la quotazione usata dal tentativo.

        label_state ed error_message cambiano con l'esito definitivo del vettore
        (apply_label_outcome): un errore di trasporto lascia il collo com'era.
        """
        shipment.quote_selected_id = quote_id
        shipment.updated_at = utc_now()
        return self._shipment_repository.update(shipment)

    async def apply_label_outcome(self, shipment: OrderShipment, outcome: Any) -> OrderShipment:
        """
        Applica l'esito del vettore al collo.

        - LabelConfirmed: generated, dimensioni congelate e purchased_at valorizzato
        - LabelPendingAsync: pending con l'id spedizione del provider
        - LabelRejected: failed con il messaggio d'errore
        - TransportAmbiguous: label_state invariato, si conserva solo l'id provider se noto

        La scrittura è protetta dal version counter: un aggiornamento concorrente
        solleva ConcurrentModificationException.
        """
        outcome = normalize_outcome(outcome)
        now = utc_now()

        if isinstance(outcome, LabelConfirmed):
            label = outcome.label
            shipment.label_state = LabelState.GENERATED.value
            shipment.easyship_shipment_id = label.provider_shipment_id or shipment.easyship_shipment_id
            shipment.easyship_label_id = label.label_id
            shipment.tracking_number = label.tracking_number
            shipment.label_url = label.label_url or shipment.label_url
            shipment.carrier = label.carrier or shipment.carrier
            shipment.service = label.service or shipment.service
            if label.cost_amount_cents is not None:
                shipment.label_cost_amount_cents = label.cost_amount_cents
            shipment.label_currency = (label.currency or shipment.label_currency or "USD").upper()
            shipment.error_message = None
            shipment.purchased_at = shipment.purchased_at or now
            shipment.freeze_dimensions()
        elif isinstance(outcome, LabelPendingAsync):
            shipment.label_state = LabelState.PENDING.value
            if outcome.provider_shipment_id:
                shipment.easyship_shipment_id = outcome.provider_shipment_id
            shipment.error_message = None
        elif isinstance(outcome, LabelRejected):
            shipment.label_state = LabelState.FAILED.value
            if outcome.provider_shipment_id:
                shipment.easyship_shipment_id = outcome.provider_shipment_id
            shipment.error_message = outcome.detail or "Label purchase rejected by carrier"
        elif isinstance(outcome, TransportAmbiguous):
            if outcome.provider_shipment_id:
                shipment.easyship_shipment_id = outcome.provider_shipment_id
        else:
            raise ValueError(f"Unsupported label outcome: {type(outcome).__name__}")

        shipment.updated_at = now
        shipment = self._shipment_repository.update(shipment)
        logger.info(
            f"Shipment {shipment.id_order_shipment} label outcome {type(outcome).__name__} -> {shipment.label_state}"
        )
        return shipment

    async def freeze_preset_dimensions(self, preset: ShippingBoxPreset) -> int:
        shipments: List[OrderShipment] = self._shipment_repository.get_by_box_preset(preset.id_shipping_box_preset)
        frozen = 0
        for shipment in shipments:
            if shipment.frozen_length_in is not None:
                continue
            if shipment.dimension_source == DimensionSource.PRESET.value:
                shipment.frozen_length_in = preset.length_in
                shipment.frozen_width_in = preset.width_in
                shipment.frozen_height_in = preset.height_in
                frozen += 1
        if frozen:
            self._shipment_repository.save_all(shipments)
        return frozen

    async def validate_business_rules(self, data: Any) -> None:
        pass

    def _resolve_preset(self, preset_id: int) -> ShippingBoxPreset:
        preset = self._preset_repository.get_by_id(preset_id)
        if preset is None:
            raise ValidationException(
                f"Unknown box preset {preset_id}",
                ErrorCode.VALIDATION_ERROR,
                {"field": "id_box_preset", "value": preset_id}
            )
        return preset

    @staticmethod
    def _apply_preset(shipment: OrderShipment, preset: ShippingBoxPreset) -> None:
        """Le misure custom restano salvate: cambia solo la fonte autorevole"""
        shipment.dimension_source = DimensionSource.PRESET.value
        shipment.id_box_preset = preset.id_shipping_box_preset
        shipment.box_preset_name = preset.name

    @staticmethod
    def _apply_custom_dimensions(shipment: OrderShipment, data: Dict[str, Any]) -> None:
        missing = [field_name for field_name in CUSTOM_DIMENSION_FIELDS if data.get(field_name) is None]
        if missing:
            raise ValidationException(
                "Custom dimensions must be provided all together",
                ErrorCode.REQUIRED_FIELD_MISSING,
                {"missing": missing}
            )
        for field_name in CUSTOM_DIMENSION_FIELDS:
            setattr(shipment, field_name, _positive(data[field_name], field_name))
        shipment.dimension_source = DimensionSource.CUSTOM.value
