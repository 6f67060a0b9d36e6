"""
Interfaccia per l'acquisto etichette
"""
from abc import abstractmethod
from typing import Dict, Any, Optional
from src.core.interfaces import IBaseService

class ILabelPurchaseService(IBaseService):

    @abstractmethod
    async def buy_label(
        self,
        order_id: int,
        shipment_id: int,
        quote_selected_id: Optional[str] = None,
        refresh: bool = False
    ) -> Dict[str, Any]:
        """Acquista l'etichetta del collo"""
        pass
