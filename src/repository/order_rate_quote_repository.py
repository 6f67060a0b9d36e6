"""
OrderRateQuote Repository: cache persistente (una voce per collo)
"""
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from src.models.order_rate_quote import OrderRateQuote
from src.repository.interfaces.order_rate_quote_repository_interface import IOrderRateQuoteRepository
from src.core.base_repository import BaseRepository
from src.core.exceptions import InfrastructureException
from src.services.core.tool import utc_now


class OrderRateQuoteRepository(BaseRepository[OrderRateQuote, int], IOrderRateQuoteRepository):

    def __init__(self, session: Session):
        super().__init__(session, OrderRateQuote)

    def get_by_shipment(self, shipment_id: int) -> Optional[OrderRateQuote]:
        try:
            return self._session.query(OrderRateQuote).filter(
                OrderRateQuote.id_order_shipment == shipment_id
            ).first()
        except Exception as e:
            raise InfrastructureException(f"Database error retrieving quote of shipment {shipment_id}: {str(e)}")

    def upsert(
        self,
        shipment_id: int,
        order_id: int,
        signature: str,
        rates_json: str,
        warning: Optional[str],
        expires_at: datetime
    ) -> OrderRateQuote:
        try:
            quote = self.get_by_shipment(shipment_id)
            if quote is None:
                quote = OrderRateQuote(id_order_shipment=shipment_id)
                self._session.add(quote)
            quote.id_order = order_id
            quote.signature = signature
            quote.rates_json = rates_json
            quote.warning = warning
            quote.created_at = utc_now()
            quote.expires_at = expires_at
            self._session.commit()
            self._session.refresh(quote)
            return quote
        except InfrastructureException:
            raise
        except Exception as e:
            self._session.rollback()
            raise InfrastructureException(f"Database error saving quote of shipment {shipment_id}: {str(e)}")

    def delete_by_shipment(self, shipment_id: int) -> None:
        try:
            self._session.query(OrderRateQuote).filter(
                OrderRateQuote.id_order_shipment == shipment_id
            ).delete(synchronize_session=False)
            self._session.commit()
        except Exception as e:
            self._session.rollback()
            raise InfrastructureException(f"Database error deleting quote of shipment {shipment_id}: {str(e)}")
