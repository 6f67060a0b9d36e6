"""
Interfaccia per la cache persistente delle quotazioni
"""
from abc import abstractmethod
from datetime import datetime
from typing import Optional
from src.core.interfaces import IRepository
from src.models.order_rate_quote import OrderRateQuote

class IOrderRateQuoteRepository(IRepository[OrderRateQuote, int]):
    """Interface per la repository delle quotazioni in cache"""

    @abstractmethod
    def get_by_shipment(self, shipment_id: int) -> Optional[OrderRateQuote]:
        """Voce di cache del collo (anche scaduta)"""
        pass

    @abstractmethod
    def upsert(
        self,
        shipment_id: int,
        order_id: int,
        signature: str,
        rates_json: str,
        warning: Optional[str],
        expires_at: datetime
    ) -> OrderRateQuote:
        """Sovrascrive la voce di cache del collo"""
        pass

    @abstractmethod
    def delete_by_shipment(self, shipment_id: int) -> None:
        """Invalida la voce di cache del collo"""
        pass
