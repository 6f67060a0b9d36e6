"""
Configurazione del container di dependency injection
"""
import logging
from src.core.container import container
from src.core.settings import get_easyship_settings
from src.repository.interfaces.ship_from_settings_repository_interface import IShipFromSettingsRepository
from src.repository.ship_from_settings_repository import ShipFromSettingsRepository
from src.repository.interfaces.shipping_box_preset_repository_interface import IShippingBoxPresetRepository
from src.repository.shipping_box_preset_repository import ShippingBoxPresetRepository
from src.repository.interfaces.order_repository_interface import IOrderRepository
from src.repository.order_repository import OrderRepository
from src.repository.interfaces.order_shipment_repository_interface import IOrderShipmentRepository
from src.repository.order_shipment_repository import OrderShipmentRepository
from src.repository.interfaces.order_rate_quote_repository_interface import IOrderRateQuoteRepository
from src.repository.order_rate_quote_repository import OrderRateQuoteRepository
from src.services.interfaces.shipping_settings_service_interface import IShippingSettingsService
from src.services.routers.shipping_settings_service import ShippingSettingsService
from src.services.interfaces.order_shipment_service_interface import IOrderShipmentService
from src.services.routers.order_shipment_service import OrderShipmentService
from src.services.interfaces.shipment_quote_service_interface import IShipmentQuoteService
from src.services.routers.shipment_quote_service import ShipmentQuoteService
from src.services.interfaces.label_purchase_service_interface import ILabelPurchaseService
from src.services.routers.label_purchase_service import LabelPurchaseService
from src.services.interfaces.label_status_service_interface import ILabelStatusService
from src.services.routers.label_status_service import LabelStatusService
from src.services.interfaces.custom_order_quote_service_interface import ICustomOrderQuoteService
from src.services.routers.custom_order_quote_service import CustomOrderQuoteService
from src.services.ecommerce.shipments.carrier_gateway import ICarrierGateway
from src.services.ecommerce.shipments.easyship_gateway import EasyshipCarrierGateway
from src.services.ecommerce.shipments.mock_gateway import MockCarrierGateway

logger = logging.getLogger(__name__)


def configure_container():
    """Configura il container con tutte le dipendenze"""

    # Repositories
    container.register_transient(IShipFromSettingsRepository, ShipFromSettingsRepository)
    container.register_transient(IShippingBoxPresetRepository, ShippingBoxPresetRepository)
    container.register_transient(IOrderRepository, OrderRepository)
    container.register_transient(IOrderShipmentRepository, OrderShipmentRepository)
    container.register_transient(IOrderRateQuoteRepository, OrderRateQuoteRepository)

    # Services
    container.register_transient(IShippingSettingsService, ShippingSettingsService)
    container.register_transient(IOrderShipmentService, OrderShipmentService)
    container.register_transient(IShipmentQuoteService, ShipmentQuoteService)
    container.register_transient(ILabelPurchaseService, LabelPurchaseService)
    container.register_transient(ILabelStatusService, LabelStatusService)
    container.register_transient(ICustomOrderQuoteService, CustomOrderQuoteService)

    # Gateway vettore (singleton: nessuno stato per richiesta)
    if get_easyship_settings().easyship_mock:
        logger.info("EASYSHIP_MOCK enabled: using offline carrier gateway")
        container.register_singleton(ICarrierGateway, MockCarrierGateway)
    else:
        container.register_singleton(ICarrierGateway, EasyshipCarrierGateway)


def get_configured_container():
    """Ottiene il container configurato"""
    if not container.is_registered(IOrderShipmentService):
        configure_container()
    return container
