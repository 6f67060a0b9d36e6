"""
Interfaccia per le quotazioni ad-hoc (senza ordine)
"""
from abc import abstractmethod
from typing import Dict, Any
from src.core.interfaces import IBaseService
from src.schemas.shipment_quote_schema import CustomOrderQuoteRequestSchema

class ICustomOrderQuoteService(IBaseService):

    @abstractmethod
    async def get_adhoc_quotes(self, request: CustomOrderQuoteRequestSchema) -> Dict[str, Any]:
        """Quotazioni per destinazione e collo arbitrari"""
        pass
