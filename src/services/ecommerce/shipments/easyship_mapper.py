from typing import Dict, Any, List, Optional
import logging

from src.models.order_shipment import LabelState
from src.services.core.tool import safe_float, to_amount_cents, trim_or_none
from src.services.ecommerce.shipments.carrier_gateway import (
    AddressSpec,
    ParcelSpec,
    RateItem,
    RateOption,
    LabelInfo,
)

logger = logging.getLogger(__name__)

POUNDS_TO_KG = 0.45359237
INCHES_TO_CM = 2.54

# Easyship 2024-09 rates example uses "fashion" as item category
DEFAULT_ITEM_CATEGORY = "fashion"
NO_SHIPPING_SOLUTIONS_DETAIL = "No shipping solutions available based on the information provided"

_FAILED_STATUS_MARKERS = ("fail", "error", "cancel")
_GENERATED_STATUS_MARKERS = ("label_generated", "generated", "success")


def _first_text(*values: Any) -> Optional[str]:
    for value in values:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        text = trim_or_none(value)
        if text:
            return text
    return None


def _first_cents(*values: Any) -> Optional[int]:
    for value in values:
        cents = to_amount_cents(value)
        if cents is not None:
            return cents
    return None


def _first_number(*values: Any) -> Optional[float]:
    for value in values:
        number = safe_float(value, None)
        if number is not None:
            return number
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class EasyshipMapper:
    """
    Mapper between internal parcel/address specs and Easyship 2024-09 payloads.

    Rates are requested in metric units (kg/cm); shipments are created in
    imperial units (lb/in) as accepted by the shipments endpoint.
    """

    def sanitize_items(self, items: Optional[List[Any]]) -> List[RateItem]:
        """Normalize customs items; always returns at least one item"""
        normalized: List[RateItem] = []
        for item in items or []:
            if item is None:
                continue
            data = item.model_dump() if hasattr(item, "model_dump") else _as_dict(item)
            description = trim_or_none(data.get("description")) or "Order item"
            quantity_raw = safe_float(data.get("quantity"), None)
            quantity = int(quantity_raw) if quantity_raw is not None and quantity_raw > 0 else 1
            quantity = max(quantity, 1)
            value_raw = safe_float(data.get("declared_value_cents"), None)
            declared_value_cents = int(round(value_raw)) if value_raw is not None and value_raw >= 0 else 1
            normalized.append(RateItem(description, quantity, declared_value_cents))
        if normalized:
            return normalized
        return [RateItem("Order items", 1, 1)]

    def build_rates_payload(
        self,
        ship_from: AddressSpec,
        destination: AddressSpec,
        parcel: ParcelSpec,
        items: Optional[List[RateItem]] = None
    ) -> Dict[str, Any]:
        rate_items = items or self.sanitize_items(None)
        total_quantity = sum(item.quantity for item in rate_items) or 1
        total_weight_kg = round(parcel.weight_lb * POUNDS_TO_KG, 4)
        per_item_weight = round(total_weight_kg / total_quantity, 4)
        if per_item_weight <= 0:
            per_item_weight = 0.001

        return {
            "origin_address": self._rates_address(ship_from),
            "destination_address": self._rates_address(destination),
            "shipping_settings": {"units": {"weight": "kg", "dimensions": "cm"}},
            "parcels": [
                {
                    "box": {
                        "length": round(parcel.length_in * INCHES_TO_CM, 2),
                        "width": round(parcel.width_in * INCHES_TO_CM, 2),
                        "height": round(parcel.height_in * INCHES_TO_CM, 2),
                    },
                    "total_actual_weight": round(total_weight_kg, 3),
                    "items": [
                        {
                            "description": item.description,
                            "category": DEFAULT_ITEM_CATEGORY,
                            "quantity": item.quantity,
                            "actual_weight": per_item_weight,
                            "declared_currency": "USD",
                            "declared_customs_value": round(item.declared_value_cents / 100, 2),
                        }
                        for item in rate_items
                    ],
                }
            ],
        }

    def build_shipment_payload(
        self,
        courier_service_id: str,
        ship_from: AddressSpec,
        destination: AddressSpec,
        parcel: ParcelSpec,
        external_reference: Optional[str] = None
    ) -> Dict[str, Any]:
        shipment: Dict[str, Any] = {
            "origin_address": self._shipment_address(ship_from),
            "destination_address": self._shipment_address(destination),
            "parcels": [
                {
                    "box": {
                        "length": round(parcel.length_in, 2),
                        "width": round(parcel.width_in, 2),
                        "height": round(parcel.height_in, 2),
                        "unit": "in",
                    },
                    "item": {
                        "actual_weight": round(parcel.weight_lb, 3),
                        "weight_unit": "lb",
                    },
                }
            ],
            "selected_courier_id": courier_service_id,
        }
        if external_reference:
            shipment["external_reference"] = external_reference
        return {"shipment": shipment}

    def parse_rates(self, data: Any) -> List[RateOption]:
        """Extract rate options from the several shapes Easyship may return"""
        payload = _as_dict(data)
        nested = _as_dict(payload.get("data"))
        source: List[Any] = []
        for candidate in (payload.get("rates"), payload.get("couriers"), nested.get("rates"), nested.get("couriers")):
            if isinstance(candidate, list):
                source = candidate
                break

        rates: List[RateOption] = []
        for raw in source:
            rate = _as_dict(raw)
            rate_id = _first_text(rate.get("courier_service_id"), rate.get("rate_id"), rate.get("id"))
            carrier = _first_text(rate.get("courier_name"), rate.get("carrier"), rate.get("provider"))
            service = _first_text(rate.get("service_name"), rate.get("service_level_name"), rate.get("service"))
            amount_cents = _first_cents(
                rate.get("total_charge"), rate.get("shipping_rate"), rate.get("rate"), rate.get("amount")
            )
            if not rate_id or not carrier or not service or amount_cents is None:
                continue
            currency = _first_text(
                rate.get("currency"), rate.get("currency_code"), rate.get("total_charge_currency")
            ) or "USD"
            rates.append(RateOption(
                id=rate_id,
                carrier=carrier,
                service=service,
                amount_cents=amount_cents,
                currency=currency.upper(),
                eta_days_min=_first_number(rate.get("delivery_days_min"), rate.get("estimated_delivery_days_min")),
                eta_days_max=_first_number(rate.get("delivery_days_max"), rate.get("estimated_delivery_days_max")),
            ))
        return rates

    def normalize_shipment_snapshot(self, payload: Any) -> Dict[str, Any]:
        """
        Normalize a create/purchase/get shipment response.

        Returns a dict with `label` (LabelInfo) and `label_state`
        (pending | generated | failed).
        """
        root = _as_dict(payload)
        data = _as_dict(root.get("data"))
        shipment = _as_dict(root.get("shipment")) or _as_dict(data.get("shipment")) or data or root
        label = (
            _as_dict(shipment.get("label"))
            or _as_dict(shipment.get("shipping_label"))
            or _as_dict(root.get("label"))
            or _as_dict(data.get("label"))
        )
        selected_rate = (
            _as_dict(shipment.get("selected_rate"))
            or _as_dict(shipment.get("courier"))
            or _as_dict(shipment.get("selected_courier"))
            or _as_dict(root.get("selected_rate"))
        )
        status = (
            _first_text(label.get("status"), shipment.get("label_state"), shipment.get("status"), root.get("status"))
            or ""
        ).lower()

        label_url = _first_text(
            label.get("label_url"), label.get("download_url"), shipment.get("label_url"), root.get("label_url")
        )
        info = LabelInfo(
            provider_shipment_id=_first_text(
                shipment.get("id"), shipment.get("easyship_shipment_id"), shipment.get("shipment_id"),
                root.get("shipment_id")
            ) or "",
            label_id=_first_text(label.get("id"), shipment.get("label_id"), root.get("label_id")),
            carrier=_first_text(selected_rate.get("carrier"), selected_rate.get("courier_name"), shipment.get("carrier")),
            service=_first_text(selected_rate.get("service"), selected_rate.get("service_name"), shipment.get("service")),
            tracking_number=_first_text(
                label.get("tracking_number"), shipment.get("tracking_number"), root.get("tracking_number")
            ),
            label_url=label_url,
            cost_amount_cents=_first_cents(
                label.get("cost"), label.get("price"), selected_rate.get("total_charge"), shipment.get("shipping_cost")
            ),
            currency=(_first_text(label.get("currency"), selected_rate.get("currency"), root.get("currency")) or "USD").upper(),
        )

        if label_url:
            label_state = LabelState.GENERATED.value
        elif any(marker in status for marker in _FAILED_STATUS_MARKERS):
            label_state = LabelState.FAILED.value
        elif any(marker in status for marker in _GENERATED_STATUS_MARKERS):
            label_state = LabelState.GENERATED.value
        else:
            label_state = LabelState.PENDING.value

        return {"label": info, "label_state": label_state, "status": status}

    def extract_error_message(self, data: Any, fallback: str = "Easyship request failed") -> str:
        payload = _as_dict(data)
        error = payload.get("error")
        if isinstance(error, dict):
            details = error.get("details")
            detail_text = None
            if isinstance(details, list) and details:
                detail_text = "; ".join(str(detail) for detail in details if detail)
            return _first_text(error.get("message"), detail_text, error.get("code")) or fallback
        return _first_text(payload.get("message"), error, payload.get("detail")) or fallback

    def extract_error_code(self, data: Any) -> Optional[str]:
        payload = _as_dict(data)
        error = payload.get("error")
        if isinstance(error, dict):
            return _first_text(error.get("code"), error.get("type"))
        return _first_text(payload.get("code"), payload.get("error_code"))

    def summarize_payload_shape(self, payload: Any, depth: int = 0) -> Any:
        """Redacted skeleton of a payload: keys only, values replaced by markers"""
        if payload is None:
            return None
        if isinstance(payload, list):
            if depth >= 6:
                return "[array]"
            return [self.summarize_payload_shape(payload[0], depth + 1)] if payload else []
        if isinstance(payload, dict):
            if depth >= 6:
                return "[object]"
            return {
                key: (None if value is None else
                      self.summarize_payload_shape(value, depth + 1) if isinstance(value, (dict, list)) else
                      "[present]")
                for key, value in payload.items()
            }
        return "[present]"

    def _rates_address(self, address: AddressSpec) -> Dict[str, Any]:
        return self._drop_none({
            "contact_name": address.name,
            "company_name": address.company_name,
            "contact_email": address.email,
            "contact_phone": address.phone,
            "line_1": address.address_line1,
            "line_2": address.address_line2,
            "city": address.city,
            "state": address.state,
            "postal_code": address.postal_code,
            "country_alpha2": address.country_code,
        })

    def _shipment_address(self, address: AddressSpec) -> Dict[str, Any]:
        return self._drop_none({
            "name": address.name,
            "company_name": address.company_name,
            "email": address.email,
            "phone_number": address.phone,
            "address_line_1": address.address_line1,
            "address_line_2": address.address_line2,
            "city": address.city,
            "state": address.state,
            "postal_code": address.postal_code,
            "country_alpha2": address.country_code,
        })

    @staticmethod
    def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
        return {key: value for key, value in values.items() if value is not None}
