"""
Test per ShippingSettingsService: indirizzo di partenza e preset scatola
"""
import pytest
from src.core.exceptions import ValidationException, AlreadyExistsError, NotFoundException
from src.models.ship_from_settings import ShipFromSettings
from src.schemas.shipping_settings_schema import ShipFromSchema, ShippingBoxPresetSchema, ShippingBoxPresetUpdateSchema
from tests.factories.order_factory import create_order
from tests.factories.shipping_factory import (
    create_ship_from,
    create_ship_from_data,
    create_box_preset,
    create_shipment,
)
from tests.helpers.services import build_services


@pytest.fixture
def services(db_session, fake_gateway):
    return build_services(db_session, fake_gateway)


@pytest.mark.unit
class TestShipFrom:

    @pytest.mark.asyncio
    async def test_read_does_not_create_record(self, db_session, services):
        values = await services.settings.read_ship_from()

        assert values["name"] is None
        assert values["updated_at"] is None
        assert db_session.query(ShipFromSettings).count() == 0

    @pytest.mark.asyncio
    async def test_update_normalizes_and_replaces(self, services):
        data = create_ship_from_data(state="nv", country="us", company="  ", address2=None)
        settings = await services.settings.update_ship_from(ShipFromSchema(**data))

        assert settings.state == "NV"
        assert settings.country == "US"
        assert settings.company is None

        settings = await services.settings.update_ship_from(ShipFromSchema(**create_ship_from_data(phone=None)))
        assert settings.phone is None
        assert settings.company == "Acme Inc"

    @pytest.mark.asyncio
    async def test_missing_fields(self, services):
        with pytest.raises(ValidationException) as exc_info:
            await services.settings.update_ship_from(ShipFromSchema(name="Warehouse", city="Reno"))
        assert exc_info.value.error_code == "REQUIRED_FIELD_MISSING"
        assert exc_info.value.details["missing"] == ["address1", "state", "postal"]

    @pytest.mark.asyncio
    async def test_invalid_country(self, services):
        with pytest.raises(ValidationException) as exc_info:
            await services.settings.update_ship_from(ShipFromSchema(**create_ship_from_data(country="USA")))
        assert exc_info.value.details["field"] == "country"

    @pytest.mark.asyncio
    async def test_invalid_us_state(self, services):
        with pytest.raises(ValidationException) as exc_info:
            await services.settings.update_ship_from(ShipFromSchema(**create_ship_from_data(state="XX")))
        assert exc_info.value.details["field"] == "state"

    @pytest.mark.asyncio
    async def test_non_us_state_is_free_form(self, services):
        data = create_ship_from_data(country="CA", state="ON", postal="M5V 2T6")
        settings = await services.settings.update_ship_from(ShipFromSchema(**data))
        assert settings.state == "ON"


@pytest.mark.unit
class TestBoxPresets:

    @pytest.mark.asyncio
    async def test_create_and_list(self, services):
        await services.settings.create_preset(
            ShippingBoxPresetSchema(name=" Medium ", length_in=12.3456, width_in=10, height_in=8)
        )

        presets = await services.settings.list_presets()
        assert len(presets) == 1
        assert presets[0].name == "Medium"
        assert presets[0].length_in == 12.346
        assert presets[0].default_weight_lb is None

    @pytest.mark.asyncio
    async def test_duplicate_name_case_insensitive(self, db_session, services):
        create_box_preset(db_session, name="Small box")

        with pytest.raises(AlreadyExistsError):
            await services.settings.create_preset(
                ShippingBoxPresetSchema(name="SMALL BOX", length_in=1, width_in=1, height_in=1)
            )

    @pytest.mark.asyncio
    async def test_rename_to_existing_name(self, db_session, services):
        create_box_preset(db_session, name="Small box")
        other = create_box_preset(db_session, name="Large box")

        with pytest.raises(AlreadyExistsError):
            await services.settings.update_preset(
                other.id_shipping_box_preset, ShippingBoxPresetUpdateSchema(name="small box")
            )

    @pytest.mark.asyncio
    async def test_update_flows_to_linked_shipments(self, db_session, services):
        order = create_order(db_session)
        preset = create_box_preset(db_session)
        shipment = create_shipment(db_session, order.id_order, preset=preset)

        await services.settings.update_preset(
            preset.id_shipping_box_preset, ShippingBoxPresetUpdateSchema(length_in=20)
        )

        db_session.expire_all()
        assert shipment.effective_dimensions == (20.0, 8.0, 4.0)

    @pytest.mark.asyncio
    async def test_delete_freezes_linked_shipments(self, db_session, services):
        order = create_order(db_session)
        preset = create_box_preset(db_session, length_in=14, width_in=10, height_in=6)
        shipment = create_shipment(db_session, order.id_order, preset=preset)
        preset_id = preset.id_shipping_box_preset

        assert await services.settings.delete_preset(preset_id) is True

        db_session.expire_all()
        assert shipment.effective_dimensions == (14.0, 10.0, 6.0)
        assert shipment.id_box_preset == preset_id
        with pytest.raises(NotFoundException):
            await services.settings.get_preset(preset_id)

    @pytest.mark.asyncio
    async def test_get_settings_bundle(self, db_session, services):
        create_ship_from(db_session)
        create_box_preset(db_session)

        result = await services.settings.get_shipping_settings()

        assert result["ship_from"]["city"] == "Reno"
        assert len(result["box_presets"]) == 1
