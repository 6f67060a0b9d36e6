"""
Carrier gateway contract.

The engine talks to the rate/label provider only through ICarrierGateway.
Purchase results are a tagged union: a definitive rejection and an ambiguous
transport failure are distinct outcomes and must never be collapsed.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

NO_SHIPPING_SOLUTIONS_WARNING = (
    "No shipping solutions available based on the information provided. "
    "Adjust package details or test in production."
)


@dataclass
class AddressSpec:
    name: str
    address_line1: str
    city: str
    state: str
    postal_code: str
    country_code: str
    company_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address_line2: Optional[str] = None


@dataclass
class ParcelSpec:
    length_in: float
    width_in: float
    height_in: float
    weight_lb: float


@dataclass
class RateItem:
    description: str
    quantity: int
    declared_value_cents: int


@dataclass
class RateOption:
    id: str
    carrier: str
    service: str
    amount_cents: int
    currency: str = "USD"
    eta_days_min: Optional[float] = None
    eta_days_max: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "carrier": self.carrier,
            "service": self.service,
            "amount_cents": self.amount_cents,
            "currency": self.currency,
            "eta_days_min": self.eta_days_min,
            "eta_days_max": self.eta_days_max,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["RateOption"]:
        if not isinstance(data, dict):
            return None
        if not data.get("id") or not data.get("carrier") or not data.get("service"):
            return None
        if not isinstance(data.get("amount_cents"), int):
            return None
        return cls(
            id=str(data["id"]),
            carrier=str(data["carrier"]),
            service=str(data["service"]),
            amount_cents=data["amount_cents"],
            currency=str(data.get("currency") or "USD"),
            eta_days_min=data.get("eta_days_min"),
            eta_days_max=data.get("eta_days_max"),
        )


@dataclass
class RawResponseHints:
    status_code: Optional[int] = None
    has_error: bool = False
    error_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"status_code": self.status_code, "has_error": self.has_error, "error_code": self.error_code}


@dataclass
class RateQuoteResult:
    rates: List[RateOption]
    warning: Optional[str] = None
    raw_response_hints: Optional[RawResponseHints] = None


@dataclass
class LabelInfo:
    provider_shipment_id: str
    label_id: Optional[str] = None
    carrier: Optional[str] = None
    service: Optional[str] = None
    tracking_number: Optional[str] = None
    label_url: Optional[str] = None
    cost_amount_cents: Optional[int] = None
    currency: str = "USD"


@dataclass
class LabelConfirmed:
    label: LabelInfo


@dataclass
class LabelPendingAsync:
    provider_shipment_id: Optional[str] = None


@dataclass
class LabelRejected:
    detail: str
    provider_shipment_id: Optional[str] = None
    status_code: Optional[int] = None


@dataclass
class TransportAmbiguous:
    detail: str
    provider_shipment_id: Optional[str] = None


PurchaseOutcome = Union[LabelConfirmed, LabelPendingAsync, LabelRejected, TransportAmbiguous]
LabelStatusOutcome = Union[LabelConfirmed, LabelPendingAsync, LabelRejected]


def normalize_outcome(outcome):
    """A confirmation without label id or tracking number is not final yet: treat it as pending"""
    if isinstance(outcome, LabelConfirmed):
        label = outcome.label
        if not label.label_id or not label.tracking_number:
            return LabelPendingAsync(provider_shipment_id=label.provider_shipment_id or None)
    return outcome


class ICarrierGateway(ABC):
    """Narrow request/response boundary towards the rate/label provider"""

    @abstractmethod
    async def quote_rates(
        self,
        ship_from: AddressSpec,
        destination: AddressSpec,
        parcel: ParcelSpec,
        items: Optional[List[RateItem]] = None
    ) -> RateQuoteResult:
        """
        Fetch rate options.

        Raises:
            ProviderUnavailableException: timeout, connection failure, 5xx
            ProviderRejectedException: definitive provider-side refusal of the request
        """
        pass

    @abstractmethod
    async def purchase_label(
        self,
        quote_id: str,
        ship_from: AddressSpec,
        destination: AddressSpec,
        parcel: ParcelSpec,
        external_reference: Optional[str] = None
    ) -> PurchaseOutcome:
        """Purchase a label. Never raises for provider/transport failures: returns a tagged outcome"""
        pass

    @abstractmethod
    async def get_label_status(self, provider_shipment_id: str) -> LabelStatusOutcome:
        """
        Look up the label status of a provider shipment.

        Raises:
            ProviderUnavailableException: the status could not be determined
        """
        pass


# Carrier matching -----------------------------------------------------------

_CARRIER_ALIASES = {
    "FEDERALEXPRESS": "FEDEX",
    "UNITEDPARCELSERVICE": "UPS",
    "USPOSTALSERVICE": "USPS",
}


def _normalize_carrier_letters(value: str) -> str:
    return re.sub(r"[^A-Z]", "", (value or "").upper())


def _carrier_match_tokens(value: str) -> List[str]:
    normalized = _normalize_carrier_letters(value)
    if not normalized:
        return []
    tokens = [normalized]
    for long_name, alias in _CARRIER_ALIASES.items():
        if long_name in normalized and alias not in tokens:
            tokens.append(alias)
            break
    return tokens


def filter_allowed_rates(rates: List[RateOption], allowed_carriers: List[str]) -> List[RateOption]:
    """Keep rates whose carrier matches an allowed carrier (substring match, alias aware)"""
    allowed_tokens = [token for carrier in allowed_carriers for token in _carrier_match_tokens(carrier)]
    if not allowed_tokens:
        return list(rates)

    def _is_allowed(rate: RateOption) -> bool:
        return any(
            carrier_token in allowed_token or allowed_token in carrier_token
            for carrier_token in _carrier_match_tokens(rate.carrier)
            for allowed_token in allowed_tokens
        )

    return [rate for rate in rates if _is_allowed(rate)]


def pick_cheapest_rate(rates: List[RateOption]) -> Optional[RateOption]:
    if not rates:
        return None
    return min(rates, key=lambda rate: rate.amount_cents)


def carrier_slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-")
