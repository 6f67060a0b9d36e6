"""
Test per EasyshipMapper: payload, parsing tariffe e snapshot spedizione
"""
import pytest
from src.models.order_shipment import LabelState
from src.services.ecommerce.shipments.carrier_gateway import AddressSpec, ParcelSpec, RateItem
from src.services.ecommerce.shipments.easyship_mapper import EasyshipMapper


@pytest.fixture
def mapper() -> EasyshipMapper:
    return EasyshipMapper()


@pytest.fixture
def origin() -> AddressSpec:
    return AddressSpec(
        name="Warehouse", address_line1="500 Industrial Way", city="Reno",
        state="NV", postal_code="89501", country_code="US", phone="+1 555 0199"
    )


@pytest.fixture
def destination() -> AddressSpec:
    return AddressSpec(
        name="Jane Doe", address_line1="1 Main St", city="Austin",
        state="TX", postal_code="73301", country_code="US", email="jane@example.com"
    )


@pytest.mark.unit
class TestSanitizeItems:

    def test_empty_items_fall_back_to_placeholder(self, mapper):
        assert mapper.sanitize_items(None) == [RateItem("Order items", 1, 1)]
        assert mapper.sanitize_items([]) == [RateItem("Order items", 1, 1)]

    def test_invalid_values_are_clamped(self, mapper):
        items = mapper.sanitize_items([
            {"description": "  ", "quantity": 0, "declared_value_cents": -5},
            {"description": "Mug", "quantity": "3", "declared_value_cents": 1250.4},
            None,
        ])
        assert items == [RateItem("Order item", 1, 1), RateItem("Mug", 3, 1250)]


@pytest.mark.unit
class TestRatesPayload:

    def test_rates_payload_uses_metric_units(self, mapper, origin, destination):
        parcel = ParcelSpec(length_in=10, width_in=5, height_in=2, weight_lb=2)
        payload = mapper.build_rates_payload(origin, destination, parcel, [RateItem("Mug", 2, 1000)])

        box = payload["parcels"][0]["box"]
        assert box == {"length": 25.4, "width": 12.7, "height": 5.08}
        assert payload["parcels"][0]["total_actual_weight"] == pytest.approx(0.907, abs=0.001)
        item = payload["parcels"][0]["items"][0]
        assert item["declared_customs_value"] == 10.0
        assert item["actual_weight"] == pytest.approx(0.4536, abs=0.0001)
        assert payload["origin_address"]["country_alpha2"] == "US"
        assert "company_name" not in payload["destination_address"]

    def test_shipment_payload_uses_imperial_units(self, mapper, origin, destination):
        parcel = ParcelSpec(length_in=10, width_in=5, height_in=2, weight_lb=2.25)
        payload = mapper.build_shipment_payload("svc_1", origin, destination, parcel, "order-1-parcel-1")

        shipment = payload["shipment"]
        assert shipment["selected_courier_id"] == "svc_1"
        assert shipment["external_reference"] == "order-1-parcel-1"
        assert shipment["parcels"][0]["box"]["unit"] == "in"
        assert shipment["parcels"][0]["item"] == {"actual_weight": 2.25, "weight_unit": "lb"}
        assert shipment["origin_address"]["phone_number"] == "+1 555 0199"


@pytest.mark.unit
class TestParseRates:

    def test_parses_top_level_rates(self, mapper):
        rates = mapper.parse_rates({"rates": [{
            "courier_service_id": "svc_1",
            "courier_name": "USPS",
            "service_name": "Priority Mail",
            "total_charge": 12.34,
            "currency": "usd",
            "delivery_days_min": 2,
            "delivery_days_max": "4",
        }]})
        assert len(rates) == 1
        assert rates[0].id == "svc_1"
        assert rates[0].amount_cents == 1234
        assert rates[0].currency == "USD"
        assert rates[0].eta_days_max == 4.0

    def test_parses_nested_couriers_and_skips_incomplete(self, mapper):
        rates = mapper.parse_rates({"data": {"couriers": [
            {"id": "r1", "carrier": "UPS", "service": "Ground", "amount": "9.9"},
            {"id": "r2", "carrier": "UPS", "amount": 5},
            {"carrier": "FedEx", "service": "Home", "amount": 7},
        ]}})
        assert [rate.id for rate in rates] == ["r1"]
        assert rates[0].amount_cents == 990

    def test_unexpected_shape_returns_no_rates(self, mapper):
        assert mapper.parse_rates(None) == []
        assert mapper.parse_rates({"rates": "nope"}) == []


@pytest.mark.unit
class TestShipmentSnapshot:

    def test_label_url_means_generated(self, mapper):
        snapshot = mapper.normalize_shipment_snapshot({"shipment": {
            "id": "es_1",
            "label": {"id": "lbl_1", "tracking_number": "1Z", "label_url": "https://x/l.pdf", "cost": 8.5},
            "selected_rate": {"courier_name": "UPS", "service_name": "Ground"},
        }})
        label = snapshot["label"]
        assert snapshot["label_state"] == LabelState.GENERATED.value
        assert label.provider_shipment_id == "es_1"
        assert label.label_id == "lbl_1"
        assert label.cost_amount_cents == 850
        assert label.carrier == "UPS"

    @pytest.mark.parametrize("status, expected", [
        ("label_failed", LabelState.FAILED.value),
        ("cancelled", LabelState.FAILED.value),
        ("label_generated", LabelState.GENERATED.value),
        ("pending", LabelState.PENDING.value),
        ("", LabelState.PENDING.value),
    ])
    def test_status_markers(self, mapper, status, expected):
        snapshot = mapper.normalize_shipment_snapshot({"shipment": {"id": "es_1", "label_state": status}})
        assert snapshot["label_state"] == expected

    def test_error_message_extraction(self, mapper):
        data = {"error": {"code": "invalid_address", "details": ["postal code invalid", "state missing"]}}
        assert mapper.extract_error_message(data) == "postal code invalid; state missing"
        assert mapper.extract_error_code(data) == "invalid_address"
        assert mapper.extract_error_message(None, fallback="boom") == "boom"

    def test_payload_shape_hides_values(self, mapper):
        shape = mapper.summarize_payload_shape({"token": "secret", "nested": [{"a": 1}], "none": None})
        assert shape == {"token": "[present]", "nested": [{"a": "[present]"}], "none": None}
