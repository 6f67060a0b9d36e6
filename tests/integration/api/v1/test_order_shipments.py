"""
Test per gli endpoint /api/v1/orders/{order_id}/shipments/*
"""
import pytest
from fastapi import status
from src.models.order_shipment import OrderShipment, LabelState
from src.services.ecommerce.shipments.carrier_gateway import LabelPendingAsync, TransportAmbiguous
from tests.helpers.asserts import assert_success_response, assert_error_response, assert_parcel_indices
from tests.factories.order_factory import create_order
from tests.factories.shipping_factory import create_ship_from, create_box_preset, create_shipment


def _url(order_id: int, suffix: str = "") -> str:
    return f"/api/v1/orders/{order_id}/shipments/{suffix}"


@pytest.fixture
def order(db_session):
    create_ship_from(db_session)
    return create_order(db_session)


@pytest.mark.integration
class TestShipmentCrud:
    """Test per GET/POST/PUT/DELETE dei colli"""

    def test_list_empty(self, admin_client, order):
        response = admin_client.get(_url(order.id_order))

        assert_success_response(response, check_fields=["shipments", "summary"])
        assert response.json()["summary"]["shipment_count"] == 0

    def test_list_unknown_order(self, admin_client, db_session):
        response = admin_client.get(_url(999))

        assert_error_response(response, status.HTTP_404_NOT_FOUND, error_code="ENTITY_NOT_FOUND")

    def test_create_with_preset(self, admin_client, db_session, order):
        preset = create_box_preset(db_session)

        response = admin_client.post(_url(order.id_order), json={"id_box_preset": preset.id_shipping_box_preset})

        assert_success_response(response, status_code=status.HTTP_201_CREATED, check_fields=["shipment"])
        shipment = response.json()["shipment"]
        assert shipment["parcel_index"] == 0
        assert shipment["dimension_source"] == "preset"
        assert shipment["weight_lb"] == 1.5
        assert shipment["effective_length_in"] == 10
        assert shipment["label_state"] == "pending"

    def test_create_with_both_sources(self, admin_client, db_session, order):
        preset = create_box_preset(db_session)
        payload = {
            "id_box_preset": preset.id_shipping_box_preset,
            "custom_length_in": 5,
            "custom_width_in": 5,
            "custom_height_in": 5,
        }

        response = admin_client.post(_url(order.id_order), json=payload)

        assert_error_response(response, status.HTTP_400_BAD_REQUEST, error_code="VALIDATION_ERROR")

    def test_update_dimensions(self, admin_client, db_session, order):
        shipment = create_shipment(db_session, order.id_order)

        response = admin_client.put(
            _url(order.id_order, str(shipment.id_order_shipment)),
            json={"custom_length_in": 20, "custom_width_in": 10, "custom_height_in": 5}
        )

        assert_success_response(response)
        assert response.json()["shipment"]["effective_length_in"] == 20

    def test_update_generated_shipment(self, admin_client, db_session, order):
        shipment = create_shipment(db_session, order.id_order, label_state=LabelState.GENERATED.value)

        response = admin_client.put(_url(order.id_order, str(shipment.id_order_shipment)), json={"weight_lb": 9})

        assert_error_response(response, status.HTTP_409_CONFLICT, error_code="INVALID_STATE")

    def test_delete_compacts_indices(self, admin_client, db_session, order):
        shipments = [create_shipment(db_session, order.id_order, parcel_index=index) for index in range(3)]

        response = admin_client.delete(_url(order.id_order, str(shipments[1].id_order_shipment)))

        assert_success_response(response)
        assert_parcel_indices(response, [0, 1])

    def test_user_cannot_create(self, user_client, order):
        response = user_client.post(
            _url(order.id_order),
            json={"custom_length_in": 5, "custom_width_in": 5, "custom_height_in": 5, "weight_lb": 1}
        )

        assert_error_response(response, status.HTTP_403_FORBIDDEN)


@pytest.mark.integration
class TestShipmentQuotes:
    """Test per POST /{shipment_id}/quotes"""

    def test_quotes_are_cached(self, admin_client, db_session, order, fake_gateway):
        shipment = create_shipment(db_session, order.id_order)
        url = _url(order.id_order, f"{shipment.id_order_shipment}/quotes")

        first = admin_client.post(url)
        second = admin_client.post(url, json={"force_refresh": False})

        assert_success_response(first, check_fields=["rates", "cached", "expires_at"])
        assert first.json()["cached"] is False
        assert first.json()["quote_selected_id"] == "rate_ups"
        assert second.json()["cached"] is True
        assert len(fake_gateway.quote_calls) == 1

    def test_force_refresh(self, admin_client, db_session, order, fake_gateway):
        shipment = create_shipment(db_session, order.id_order)
        url = _url(order.id_order, f"{shipment.id_order_shipment}/quotes")

        admin_client.post(url)
        response = admin_client.post(url, json={"force_refresh": True})

        assert response.json()["cached"] is False
        assert len(fake_gateway.quote_calls) == 2

    def test_parcel_incomplete(self, admin_client, db_session, order, fake_gateway):
        shipment = create_shipment(db_session, order.id_order, weight_lb=None)

        response = admin_client.post(_url(order.id_order, f"{shipment.id_order_shipment}/quotes"))

        assert_error_response(response, status.HTTP_400_BAD_REQUEST, error_code="PARCEL_INCOMPLETE")
        assert fake_gateway.quote_calls == []


@pytest.mark.integration
class TestBuyLabel:
    """Test per POST /{shipment_id}/buy e GET /{shipment_id}/label-status"""

    def test_buy_without_quote(self, admin_client, db_session, order):
        shipment = create_shipment(db_session, order.id_order)

        response = admin_client.post(_url(order.id_order, f"{shipment.id_order_shipment}/buy"))

        assert_error_response(response, status.HTTP_400_BAD_REQUEST, error_code="NO_QUOTE_SELECTED")

    def test_buy_stale_quote(self, admin_client, db_session, order):
        shipment = create_shipment(db_session, order.id_order)

        response = admin_client.post(
            _url(order.id_order, f"{shipment.id_order_shipment}/buy"), json={"quote_selected_id": "rate_ups"}
        )

        assert_error_response(response, status.HTTP_409_CONFLICT, error_code="QUOTE_NOT_FOUND")

    def test_buy_uses_selection_from_quotes(self, admin_client, db_session, order, fake_gateway):
        shipment = create_shipment(db_session, order.id_order)
        quotes = admin_client.post(_url(order.id_order, f"{shipment.id_order_shipment}/quotes"))
        assert quotes.json()["quote_selected_id"] == "rate_ups"

        response = admin_client.post(_url(order.id_order, f"{shipment.id_order_shipment}/buy"))

        assert_success_response(response)
        assert response.json()["shipment"]["label_state"] == "generated"
        assert fake_gateway.purchase_calls[0]["quote_id"] == "rate_ups"

    def test_buy_selected_quote(self, admin_client, db_session, order, fake_gateway):
        shipment = create_shipment(db_session, order.id_order)
        admin_client.post(_url(order.id_order, f"{shipment.id_order_shipment}/quotes"))

        response = admin_client.post(
            _url(order.id_order, f"{shipment.id_order_shipment}/buy"), json={"quote_selected_id": "rate_usps"}
        )

        assert_success_response(response, check_fields=["shipment", "summary", "pending_refresh"])
        data = response.json()
        assert data["shipment"]["label_state"] == "generated"
        assert data["shipment"]["tracking_number"] == "TRACK1"
        assert data["summary"]["actual_label_total_cents"] == 899
        assert fake_gateway.purchase_calls[0]["quote_id"] == "rate_usps"

        db_session.expire_all()
        stored = db_session.get(OrderShipment, shipment.id_order_shipment)
        assert stored.purchased_at is not None

        response = admin_client.post(
            _url(order.id_order, f"{shipment.id_order_shipment}/buy"), json={"refresh": True}
        )
        assert_error_response(response, status.HTTP_409_CONFLICT, error_code="SHIPMENT_ALREADY_PURCHASED")

    def test_buy_with_refresh(self, admin_client, db_session, order, fake_gateway):
        shipment = create_shipment(db_session, order.id_order)

        response = admin_client.post(
            _url(order.id_order, f"{shipment.id_order_shipment}/buy"), json={"refresh": True}
        )

        assert_success_response(response)
        assert response.json()["quote_selected_id"] == "rate_ups"

    def test_pending_then_status_refresh(self, admin_client, db_session, order, fake_gateway):
        shipment = create_shipment(db_session, order.id_order)
        fake_gateway.purchase_outcomes.append(LabelPendingAsync(provider_shipment_id="es_async"))

        response = admin_client.post(
            _url(order.id_order, f"{shipment.id_order_shipment}/buy"), json={"refresh": True}
        )
        assert_success_response(response)
        assert response.json()["pending_refresh"] is True
        assert response.json()["shipment"]["label_state"] == "pending"

        response = admin_client.get(_url(order.id_order, f"{shipment.id_order_shipment}/label-status"))

        assert_success_response(response, check_fields=["refreshed"])
        assert response.json()["refreshed"] is True
        assert response.json()["shipment"]["label_state"] == "generated"
        assert fake_gateway.status_calls == ["es_async"]

    def test_ambiguous_purchase(self, admin_client, db_session, order, fake_gateway):
        shipment = create_shipment(db_session, order.id_order)
        fake_gateway.purchase_outcomes.append(TransportAmbiguous(detail="read timeout"))

        response = admin_client.post(
            _url(order.id_order, f"{shipment.id_order_shipment}/buy"), json={"refresh": True}
        )

        assert_error_response(response, status.HTTP_503_SERVICE_UNAVAILABLE, error_code="PROVIDER_UNAVAILABLE")
        assert response.json()["details"]["retryable"] is True
        assert response.headers["retry-after"] == "30"

    def test_missing_phone(self, admin_client, db_session, fake_gateway):
        create_ship_from(db_session)
        order = create_order(db_session, shipping_phone=None)
        shipment = create_shipment(db_session, order.id_order)

        response = admin_client.post(
            _url(order.id_order, f"{shipment.id_order_shipment}/buy"), json={"refresh": True}
        )

        assert_error_response(response, status.HTTP_400_BAD_REQUEST, error_code="DESTINATION_PHONE_REQUIRED")
        assert fake_gateway.purchase_calls == []

    def test_label_status_without_provider_id(self, admin_client, db_session, order, fake_gateway):
        shipment = create_shipment(db_session, order.id_order)

        response = admin_client.get(_url(order.id_order, f"{shipment.id_order_shipment}/label-status"))

        assert_success_response(response)
        assert response.json()["refreshed"] is False
        assert fake_gateway.status_calls == []
