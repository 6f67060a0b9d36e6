"""
Test per le funzioni di supporto del contratto gateway
"""
import pytest
from src.services.ecommerce.shipments.carrier_gateway import (
    LabelConfirmed,
    LabelPendingAsync,
    LabelRejected,
    RateOption,
    filter_allowed_rates,
    pick_cheapest_rate,
    normalize_outcome,
)
from tests.conftest import make_label, make_rate


@pytest.mark.unit
class TestFilterAllowedRates:

    def test_long_carrier_names_match_aliases(self):
        rates = [
            make_rate("a", "Federal Express"),
            make_rate("b", "United Parcel Service"),
            make_rate("c", "DHL Express"),
            make_rate("d", "USPS"),
        ]
        allowed = filter_allowed_rates(rates, ["FEDEX", "UPS"])
        assert [rate.id for rate in allowed] == ["a", "b"]

    def test_substring_match_is_case_and_punctuation_insensitive(self):
        rates = [make_rate("a", "usps - ground advantage"), make_rate("b", "Sendle")]
        assert [rate.id for rate in filter_allowed_rates(rates, ["U.S.P.S."])] == ["a"]

    def test_empty_allowed_list_keeps_everything(self):
        rates = [make_rate("a", "DHL")]
        assert filter_allowed_rates(rates, []) == rates


@pytest.mark.unit
def test_pick_cheapest_rate():
    rates = [make_rate("a", amount_cents=500), make_rate("b", amount_cents=300)]
    assert pick_cheapest_rate(rates).id == "b"
    assert pick_cheapest_rate([]) is None


@pytest.mark.unit
class TestNormalizeOutcome:

    def test_complete_confirmation_is_kept(self):
        outcome = LabelConfirmed(label=make_label())
        assert normalize_outcome(outcome) is outcome

    @pytest.mark.parametrize("label_id, tracking", [(None, "T1"), ("L1", None), ("", "")])
    def test_confirmation_without_label_or_tracking_is_pending(self, label_id, tracking):
        outcome = normalize_outcome(LabelConfirmed(label=make_label("es_9", label_id=label_id, tracking_number=tracking)))
        assert outcome == LabelPendingAsync(provider_shipment_id="es_9")

    def test_rejection_is_untouched(self):
        outcome = LabelRejected(detail="bad address")
        assert normalize_outcome(outcome) is outcome


@pytest.mark.unit
def test_rate_option_from_dict_rejects_malformed_entries():
    assert RateOption.from_dict({"id": "a", "carrier": "UPS", "service": "G", "amount_cents": "10"}) is None
    assert RateOption.from_dict("nope") is None
    rate = RateOption.from_dict({"id": "a", "carrier": "UPS", "service": "G", "amount_cents": 10})
    assert rate.currency == "USD"
