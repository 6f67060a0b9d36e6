"""
Interfaccia per ShippingBoxPreset Repository seguendo ISP
"""
from abc import abstractmethod
from typing import Optional
from src.core.interfaces import IRepository
from src.models.shipping_box_preset import ShippingBoxPreset

class IShippingBoxPresetRepository(IRepository[ShippingBoxPreset, int]):
    """Interface per la repository dei preset scatola"""

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[ShippingBoxPreset]:
        """Ottiene un preset per nome (case insensitive)"""
        pass
