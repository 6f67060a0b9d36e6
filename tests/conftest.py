"""
Fixture principali per i test della Shipping Label API
"""
import os
import sys
from collections import deque
from pathlib import Path
from typing import Generator, Dict, Any, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Aggiungi il path del progetto
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt-tokens")

from src.main import app
from src.database import Base, get_db
from src.core.dependencies import get_carrier_gateway
from src.core.locks import get_shipment_lock_manager
from src.core.settings import get_easyship_settings, get_shipping_label_settings
from src.services.routers.auth_service import get_current_user
from src.services.routers.custom_order_quote_service import get_adhoc_quote_cache
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
)


# ============================================================================
# Database Test Setup
# ============================================================================

# SQLite in-memory per i test
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

test_engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """
    Crea una sessione database isolata per ogni test.
    Le tabelle vengono ricreate a ogni test.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestSessionLocal()

    try:
        yield session
        session.rollback()
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


def override_get_db():
    """Override per get_db dependency"""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def reset_process_state(monkeypatch):
    """Settings, lock e memo ad-hoc sono cache di processo: ripartono puliti a ogni test"""
    monkeypatch.delenv("EASYSHIP_ALLOWED_CARRIERS", raising=False)
    get_easyship_settings.cache_clear()
    get_shipping_label_settings.cache_clear()
    get_shipment_lock_manager.cache_clear()
    get_adhoc_quote_cache.cache_clear()
    yield
    get_easyship_settings.cache_clear()
    get_shipping_label_settings.cache_clear()
    get_shipment_lock_manager.cache_clear()
    get_adhoc_quote_cache.cache_clear()


# ============================================================================
# Fake Carrier Gateway
# ============================================================================

def make_rate(rate_id: str, carrier: str = "USPS", amount_cents: int = 1000, service: str = "Priority") -> RateOption:
    return RateOption(id=rate_id, carrier=carrier, service=service, amount_cents=amount_cents,
                      eta_days_min=2, eta_days_max=4)


def make_label(provider_shipment_id: str = "es_1", label_id: Optional[str] = "lbl_1",
               tracking_number: Optional[str] = "TRACK1", cost_amount_cents: int = 899) -> LabelInfo:
    return LabelInfo(
        provider_shipment_id=provider_shipment_id,
        label_id=label_id,
        carrier="USPS",
        service="Priority",
        tracking_number=tracking_number,
        label_url=f"https://labels.example.com/{provider_shipment_id}.pdf",
        cost_amount_cents=cost_amount_cents,
        currency="USD",
    )


DEFAULT_RATES = [
    make_rate("rate_usps", "USPS", 1250),
    make_rate("rate_ups", "UPS", 990, "Ground"),
    make_rate("rate_fedex", "FedEx", 1500, "Home Delivery"),
]


class FakeCarrierGateway(ICarrierGateway):
    """
    Gateway scriptabile per i test.

    Ogni coda contiene esiti (o eccezioni da sollevare) consumati in ordine;
    a coda vuota si usano i default. Le chiamate vengono registrate.
    """

    def __init__(self):
        self.rate_results: deque = deque()
        self.purchase_outcomes: deque = deque()
        self.status_outcomes: deque = deque()
        self.default_rates: List[RateOption] = list(DEFAULT_RATES)
        self.quote_calls: List[Dict[str, Any]] = []
        self.purchase_calls: List[Dict[str, Any]] = []
        self.status_calls: List[str] = []
        self.quote_gate = None

    @staticmethod
    def _next(queue: deque, default):
        item = queue.popleft() if queue else default
        if isinstance(item, Exception):
            raise item
        return item

    async def quote_rates(
        self,
        ship_from: AddressSpec,
        destination: AddressSpec,
        parcel: ParcelSpec,
        items: Optional[List[RateItem]] = None
    ) -> RateQuoteResult:
        self.quote_calls.append({"ship_from": ship_from, "destination": destination, "parcel": parcel, "items": items})
        if self.quote_gate is not None:
            await self.quote_gate.wait()
        default = RateQuoteResult(rates=list(self.default_rates), raw_response_hints=RawResponseHints(status_code=200))
        return self._next(self.rate_results, default)

    async def purchase_label(
        self,
        quote_id: str,
        ship_from: AddressSpec,
        destination: AddressSpec,
        parcel: ParcelSpec,
        external_reference: Optional[str] = None
    ):
        self.purchase_calls.append({"quote_id": quote_id, "parcel": parcel, "external_reference": external_reference})
        return self._next(self.purchase_outcomes, LabelConfirmed(label=make_label()))

    async def get_label_status(self, provider_shipment_id: str):
        self.status_calls.append(provider_shipment_id)
        return self._next(self.status_outcomes, LabelConfirmed(label=make_label(provider_shipment_id)))


@pytest.fixture
def fake_gateway() -> FakeCarrierGateway:
    return FakeCarrierGateway()


# ============================================================================
# App e client HTTP
# ============================================================================

ADMIN_USER = {"username": "admin", "id": 1, "roles": [{"name": "ADMIN", "permissions": ["C", "R", "U", "D"]}]}
BASE_USER = {"username": "user", "id": 3, "roles": [{"name": "USER", "permissions": ["R"]}]}


@pytest.fixture(scope="function")
def test_app(db_session: Session, fake_gateway: FakeCarrierGateway):
    """
    App FastAPI con dependency overrides per database e gateway vettore.
    L'utente di default è BASE_USER; i client admin/user lo sostituiscono.
    """
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_carrier_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_current_user] = lambda: BASE_USER

    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(test_app) -> TestClient:
    """Client senza override utente specifico (auth reale dopo il pop dell'override)"""
    return TestClient(test_app)


@pytest.fixture
def admin_client(test_app) -> TestClient:
    test_app.dependency_overrides[get_current_user] = lambda: ADMIN_USER
    return TestClient(test_app)


@pytest.fixture
def user_client(test_app) -> TestClient:
    test_app.dependency_overrides[get_current_user] = lambda: BASE_USER
    return TestClient(test_app)
