"""
ShippingSettings Service: indirizzo di partenza e catalogo preset scatola
"""
import logging
from typing import List, Dict, Any
from src.services.interfaces.shipping_settings_service_interface import IShippingSettingsService
from src.services.interfaces.order_shipment_service_interface import IOrderShipmentService
from src.repository.interfaces.ship_from_settings_repository_interface import IShipFromSettingsRepository
from src.repository.interfaces.shipping_box_preset_repository_interface import IShippingBoxPresetRepository
from src.schemas.shipping_settings_schema import ShipFromSchema, ShippingBoxPresetSchema, ShippingBoxPresetUpdateSchema
from src.models.ship_from_settings import ShipFromSettings
from src.models.shipping_box_preset import ShippingBoxPreset
from src.core.exceptions import (
    ValidationException,
    AlreadyExistsError,
    ExceptionFactory,
    NotFoundException,
    ErrorCode
)
from src.services.core.tool import trim_or_none, round3, utc_now
from src.services.ecommerce.shipments.shipping_context import (
    US_STATE_CODES,
    SHIP_FROM_REQUIRED_FIELDS,
    missing_fields,
    ship_from_values,
)

logger = logging.getLogger(__name__)


class ShippingSettingsService(IShippingSettingsService):
    """ShippingSettings Service seguendo SRP e DIP"""

    def __init__(
        self,
        ship_from_settings_repository: IShipFromSettingsRepository,
        shipping_box_preset_repository: IShippingBoxPresetRepository,
        order_shipment_service: IOrderShipmentService
    ):
        self._ship_from_repository = ship_from_settings_repository
        self._preset_repository = shipping_box_preset_repository
        self._order_shipment_service = order_shipment_service

    async def get_shipping_settings(self) -> Dict[str, Any]:
        return {
            "ship_from": await self.read_ship_from(),
            "box_presets": await self.list_presets(),
        }

    async def read_ship_from(self) -> Dict[str, Any]:
        """La lettura non crea mai il record singleton"""
        settings = self._ship_from_repository.get_settings()
        values = ship_from_values(settings)
        values["updated_at"] = settings.updated_at if settings else None
        return values

    async def update_ship_from(self, ship_from_data: ShipFromSchema) -> ShipFromSettings:
        values = {
            field_name: trim_or_none(value)
            for field_name, value in ship_from_data.model_dump().items()
        }
        values["country"] = (values.get("country") or "US").upper()
        if values.get("state"):
            values["state"] = values["state"].upper()

        await self.validate_business_rules(values)

        settings = self._ship_from_repository.replace_settings(values)
        logger.info("Ship-from settings updated")
        return settings

    async def create_preset(self, preset_data: ShippingBoxPresetSchema) -> ShippingBoxPreset:
        """Crea un nuovo preset (nome univoco, case insensitive)"""
        name = preset_data.name.strip()
        if not name:
            raise ValidationException("Preset name is required", ErrorCode.REQUIRED_FIELD_MISSING, {"field": "name"})

        if self._preset_repository.get_by_name(name):
            raise AlreadyExistsError(
                f"Box preset with name '{name}' already exists",
                "ShippingBoxPreset",
                details={"name": name}
            )

        now = utc_now()
        preset = ShippingBoxPreset(
            name=name,
            length_in=round3(preset_data.length_in),
            width_in=round3(preset_data.width_in),
            height_in=round3(preset_data.height_in),
            default_weight_lb=round3(preset_data.default_weight_lb),
            created_at=now,
            updated_at=now,
        )
        return self._preset_repository.create(preset)

    async def update_preset(self, preset_id: int, preset_data: ShippingBoxPresetUpdateSchema) -> ShippingBoxPreset:
        preset = await self.get_preset(preset_id)
        changes = preset_data.model_dump(exclude_unset=True)

        # Business Rule: se il nome cambia deve restare univoco
        if changes.get("name") is not None:
            name = changes["name"].strip()
            if not name:
                raise ValidationException("Preset name is required", ErrorCode.REQUIRED_FIELD_MISSING, {"field": "name"})
            existing = self._preset_repository.get_by_name(name)
            if existing and existing.id_shipping_box_preset != preset_id:
                raise AlreadyExistsError(
                    f"Box preset with name '{name}' already exists",
                    "ShippingBoxPreset",
                    details={"name": name}
                )
            preset.name = name

        for field_name in ("length_in", "width_in", "height_in"):
            if changes.get(field_name) is not None:
                setattr(preset, field_name, round3(changes[field_name]))
        if "default_weight_lb" in changes:
            preset.default_weight_lb = round3(changes["default_weight_lb"])
        preset.updated_at = utc_now()

        # Il nome è denormalizzato sui colli: la misura no, viene letta dal preset
        return self._preset_repository.update(preset)

    async def get_preset(self, preset_id: int) -> ShippingBoxPreset:
        preset = self._preset_repository.get_by_id(preset_id)
        if preset is None:
            raise ExceptionFactory.box_preset_not_found(preset_id)
        return preset

    async def list_presets(self) -> List[ShippingBoxPreset]:
        return self._preset_repository.get_all()

    async def delete_preset(self, preset_id: int) -> bool:
        """
        Elimina il preset senza condizioni.

        Prima della rimozione i colli che lo referenziano ricevono le dimensioni
        congelate, così le loro misure effettive non cambiano.
        """
        preset = await self.get_preset(preset_id)
        frozen = await self._order_shipment_service.freeze_preset_dimensions(preset)
        if frozen:
            logger.info(f"Frozen dimensions of {frozen} shipment(s) before deleting box preset {preset_id}")
        try:
            return self._preset_repository.delete(preset_id)
        except NotFoundException:
            raise ExceptionFactory.box_preset_not_found(preset_id)

    async def validate_business_rules(self, data: Any) -> None:
        """Valida l'indirizzo di partenza prima della sostituzione"""
        missing = missing_fields(data, SHIP_FROM_REQUIRED_FIELDS)
        if missing:
            raise ValidationException(
                f"Missing required ship-from fields: {', '.join(missing)}",
                ErrorCode.REQUIRED_FIELD_MISSING,
                {"missing": missing}
            )

        country = data["country"]
        if len(country) != 2 or not country.isalpha():
            raise ValidationException(
                "Country must be a 2-letter ISO code",
                ErrorCode.VALIDATION_ERROR,
                {"field": "country", "value": country}
            )

        if country == "US" and data["state"] not in US_STATE_CODES:
            raise ValidationException(
                "State must be a valid US state code",
                ErrorCode.VALIDATION_ERROR,
                {"field": "state", "value": data["state"]}
            )
