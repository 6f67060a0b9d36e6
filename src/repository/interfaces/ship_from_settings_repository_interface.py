"""
Interfaccia per ShipFromSettings Repository seguendo ISP
"""
from abc import abstractmethod
from typing import Optional, Dict, Any
from src.core.interfaces import IRepository
from src.models.ship_from_settings import ShipFromSettings

class IShipFromSettingsRepository(IRepository[ShipFromSettings, int]):
    """Interface per la repository dell'indirizzo di partenza (singleton)"""

    @abstractmethod
    def get_settings(self) -> Optional[ShipFromSettings]:
        """Ottiene il record singleton, None se mai configurato"""
        pass

    @abstractmethod
    def replace_settings(self, values: Dict[str, Any]) -> ShipFromSettings:
        """Sostituisce integralmente il record singleton (lo crea se assente)"""
        pass
