import logging
import time
import uuid
import random
from typing import List, Optional

from src.services.ecommerce.shipments.carrier_gateway import (
    ICarrierGateway,
    AddressSpec,
    ParcelSpec,
    RateItem,
    RateOption,
    RateQuoteResult,
    RawResponseHints,
    LabelInfo,
    LabelConfirmed,
    PurchaseOutcome,
    LabelStatusOutcome,
)

logger = logging.getLogger(__name__)

# (id, carrier, service, surcharge USD, eta min, eta max)
MOCK_RATE_SAMPLES = [
    ("mock-usps-priority", "USPS", "Priority Mail", 0.0, 2, 4),
    ("mock-ups-ground", "UPS", "Ground", 1.1, 2, 5),
    ("mock-fedex-ground", "FedEx", "Ground Home", 1.45, 2, 5),
]


class MockCarrierGateway(ICarrierGateway):
    """Offline gateway (EASYSHIP_MOCK=1): deterministic rates, labels generated immediately"""

    async def quote_rates(
        self,
        ship_from: AddressSpec,
        destination: AddressSpec,
        parcel: ParcelSpec,
        items: Optional[List[RateItem]] = None
    ) -> RateQuoteResult:
        volume = parcel.length_in * parcel.width_in * parcel.height_in
        base = max(6.5, parcel.weight_lb * 4 + volume * 0.0035)
        rates = [
            RateOption(
                id=rate_id,
                carrier=carrier,
                service=service,
                amount_cents=int(round((base + surcharge) * 100)),
                currency="USD",
                eta_days_min=eta_min,
                eta_days_max=eta_max,
            )
            for rate_id, carrier, service, surcharge, eta_min, eta_max in MOCK_RATE_SAMPLES
        ]
        return RateQuoteResult(rates=rates, raw_response_hints=RawResponseHints(status_code=200))

    async def purchase_label(
        self,
        quote_id: str,
        ship_from: AddressSpec,
        destination: AddressSpec,
        parcel: ParcelSpec,
        external_reference: Optional[str] = None
    ) -> PurchaseOutcome:
        rate_id = (quote_id or "mock-rate").upper()
        if "USPS" in rate_id:
            carrier = "USPS"
        elif "FEDEX" in rate_id:
            carrier = "FedEx"
        else:
            carrier = "UPS"
        tracking_seed = f"{int(time.time() * 1000)}{random.randint(0, 9999)}"
        logger.info(f"Mock label purchased for quote {quote_id}")
        return LabelConfirmed(label=LabelInfo(
            provider_shipment_id=str(uuid.uuid4()),
            label_id=str(uuid.uuid4()),
            carrier=carrier,
            service=quote_id,
            tracking_number=f"MOCK{tracking_seed[-12:]}",
            label_url=f"https://example.com/mock-labels/{uuid.uuid4()}.pdf",
            cost_amount_cents=int(round(max(5.99, parcel.weight_lb * 4.25) * 100)),
            currency="USD",
        ))

    async def get_label_status(self, provider_shipment_id: str) -> LabelStatusOutcome:
        return LabelConfirmed(label=LabelInfo(
            provider_shipment_id=provider_shipment_id,
            label_id=str(uuid.uuid4()),
            carrier="USPS",
            service="Priority Mail",
            tracking_number=f"MOCK{int(time.time() * 1000)}",
            label_url=f"https://example.com/mock-labels/{provider_shipment_id}.pdf",
            cost_amount_cents=799,
            currency="USD",
        ))
