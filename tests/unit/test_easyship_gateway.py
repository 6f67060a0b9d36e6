"""
Test per EasyshipCarrierGateway: classificazione degli esiti del vettore
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from src.core.exceptions import ProviderRejectedException, ProviderUnavailableException
from src.services.ecommerce.shipments.carrier_gateway import (
    AddressSpec,
    ParcelSpec,
    LabelConfirmed,
    LabelPendingAsync,
    LabelRejected,
    TransportAmbiguous,
    NO_SHIPPING_SOLUTIONS_WARNING,
)
from src.services.ecommerce.shipments.easyship_client import (
    EasyshipClient,
    EasyshipConfigurationError,
    EasyshipHttpError,
    EasyshipTransportError,
)
from src.services.ecommerce.shipments.easyship_gateway import EasyshipCarrierGateway

ORIGIN = AddressSpec("Warehouse", "500 Industrial Way", "Reno", "NV", "89501", "US")
DESTINATION = AddressSpec("Jane Doe", "1 Main St", "Austin", "TX", "73301", "US", phone="+1 555 0100")
PARCEL = ParcelSpec(10, 8, 4, 2)

GENERATED_SHIPMENT = {"shipment": {
    "id": "es_1",
    "label": {"id": "lbl_1", "tracking_number": "1Z1", "label_url": "https://x/l.pdf", "cost": 9.1},
}}


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock(spec=EasyshipClient)
    client.get_rates = AsyncMock()
    client.create_shipment = AsyncMock(return_value={"shipment": {"id": "es_1"}})
    client.purchase_label = AsyncMock(return_value=GENERATED_SHIPMENT)
    client.get_shipment = AsyncMock(return_value=GENERATED_SHIPMENT)
    return client


@pytest.fixture
def gateway(client) -> EasyshipCarrierGateway:
    return EasyshipCarrierGateway(client=client)


@pytest.mark.unit
class TestQuoteRates:

    @pytest.mark.asyncio
    async def test_rates_are_parsed(self, gateway, client):
        client.get_rates.return_value = {"rates": [
            {"courier_service_id": "svc", "courier_name": "UPS", "service_name": "Ground", "total_charge": 7.5}
        ]}
        result = await gateway.quote_rates(ORIGIN, DESTINATION, PARCEL)
        assert [rate.id for rate in result.rates] == ["svc"]
        assert result.warning is None
        assert result.raw_response_hints.status_code == 200

    @pytest.mark.asyncio
    async def test_no_shipping_solutions_is_a_warning(self, gateway, client):
        client.get_rates.side_effect = EasyshipHttpError(
            422, "No shipping solutions available based on the information provided", error_code="no_solutions"
        )
        result = await gateway.quote_rates(ORIGIN, DESTINATION, PARCEL)
        assert result.rates == []
        assert result.warning == NO_SHIPPING_SOLUTIONS_WARNING
        assert result.raw_response_hints.has_error
        assert result.raw_response_hints.error_code == "no_solutions"

    @pytest.mark.asyncio
    async def test_client_error_is_rejection(self, gateway, client):
        client.get_rates.side_effect = EasyshipHttpError(400, "postal_code is invalid")
        with pytest.raises(ProviderRejectedException) as exc_info:
            await gateway.quote_rates(ORIGIN, DESTINATION, PARCEL)
        assert exc_info.value.details["retryable"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        EasyshipHttpError(503, "maintenance"),
        EasyshipHttpError(429, "slow down"),
        EasyshipTransportError("timeout"),
    ])
    async def test_transport_failures_are_unavailable(self, gateway, client, error):
        client.get_rates.side_effect = error
        with pytest.raises(ProviderUnavailableException) as exc_info:
            await gateway.quote_rates(ORIGIN, DESTINATION, PARCEL)
        assert exc_info.value.details["retryable"] is True


@pytest.mark.unit
class TestPurchaseLabel:

    @pytest.mark.asyncio
    async def test_generated_label(self, gateway, client):
        outcome = await gateway.purchase_label("svc", ORIGIN, DESTINATION, PARCEL, "order-1-parcel-1")
        assert isinstance(outcome, LabelConfirmed)
        assert outcome.label.provider_shipment_id == "es_1"
        assert outcome.label.cost_amount_cents == 910
        client.purchase_label.assert_awaited_once_with("es_1", "svc")
        payload = client.create_shipment.await_args.args[0]
        assert payload["shipment"]["external_reference"] == "order-1-parcel-1"

    @pytest.mark.asyncio
    async def test_label_not_ready_is_pending(self, gateway, client):
        client.purchase_label.return_value = {"shipment": {"id": "es_1", "label_state": "pending"}}
        outcome = await gateway.purchase_label("svc", ORIGIN, DESTINATION, PARCEL)
        assert outcome == LabelPendingAsync(provider_shipment_id="es_1")

    @pytest.mark.asyncio
    async def test_create_rejected(self, gateway, client):
        client.create_shipment.side_effect = EasyshipHttpError(422, "address invalid")
        outcome = await gateway.purchase_label("svc", ORIGIN, DESTINATION, PARCEL)
        assert isinstance(outcome, LabelRejected)
        assert outcome.status_code == 422
        client.purchase_label.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_timeout_is_ambiguous(self, gateway, client):
        client.create_shipment.side_effect = EasyshipTransportError("read timeout")
        outcome = await gateway.purchase_label("svc", ORIGIN, DESTINATION, PARCEL)
        assert isinstance(outcome, TransportAmbiguous)
        assert outcome.provider_shipment_id is None

    @pytest.mark.asyncio
    async def test_missing_token_is_unavailable_not_ambiguous(self, gateway, client):
        client.create_shipment.side_effect = EasyshipConfigurationError("EASYSHIP_TOKEN is not configured")
        with pytest.raises(ProviderUnavailableException) as exc_info:
            await gateway.purchase_label("svc", ORIGIN, DESTINATION, PARCEL)
        assert exc_info.value.details["reason"] == "configuration"
        client.purchase_label.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_purchase_server_error_keeps_provider_id(self, gateway, client):
        client.purchase_label.side_effect = EasyshipHttpError(502, "bad gateway")
        outcome = await gateway.purchase_label("svc", ORIGIN, DESTINATION, PARCEL)
        assert isinstance(outcome, TransportAmbiguous)
        assert outcome.provider_shipment_id == "es_1"

    @pytest.mark.asyncio
    async def test_missing_shipment_id_is_ambiguous(self, gateway, client):
        client.create_shipment.return_value = {"shipment": {}}
        outcome = await gateway.purchase_label("svc", ORIGIN, DESTINATION, PARCEL)
        assert isinstance(outcome, TransportAmbiguous)


@pytest.mark.unit
class TestLabelStatus:

    @pytest.mark.asyncio
    async def test_unknown_shipment_is_rejected(self, gateway, client):
        client.get_shipment.side_effect = EasyshipHttpError(404, "not found")
        outcome = await gateway.get_label_status("es_404")
        assert isinstance(outcome, LabelRejected)
        assert outcome.provider_shipment_id == "es_404"

    @pytest.mark.asyncio
    async def test_lookup_failure_raises_unavailable(self, gateway, client):
        client.get_shipment.side_effect = EasyshipHttpError(500, "oops")
        with pytest.raises(ProviderUnavailableException):
            await gateway.get_label_status("es_1")

    @pytest.mark.asyncio
    async def test_failed_status(self, gateway, client):
        client.get_shipment.return_value = {"shipment": {"id": "es_1", "status": "label_failed"}}
        outcome = await gateway.get_label_status("es_1")
        assert isinstance(outcome, LabelRejected)
