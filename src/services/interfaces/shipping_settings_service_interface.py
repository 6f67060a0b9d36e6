"""
Interfaccia per ShippingSettings Service seguendo ISP
"""
from abc import abstractmethod
from typing import List, Dict, Any
from src.core.interfaces import IBaseService
from src.schemas.shipping_settings_schema import ShipFromSchema, ShippingBoxPresetSchema, ShippingBoxPresetUpdateSchema
from src.models.ship_from_settings import ShipFromSettings
from src.models.shipping_box_preset import ShippingBoxPreset

class IShippingSettingsService(IBaseService):
    """Interface per indirizzo di partenza e preset scatola"""

    @abstractmethod
    async def get_shipping_settings(self) -> Dict[str, Any]:
        """Ship-from e preset in un'unica risposta"""
        pass

    @abstractmethod
    async def read_ship_from(self) -> Dict[str, Any]:
        """Ottiene l'indirizzo di partenza (record vuoto se non configurato)"""
        pass

    @abstractmethod
    async def update_ship_from(self, ship_from_data: ShipFromSchema) -> ShipFromSettings:
        """Sostituisce l'indirizzo di partenza"""
        pass

    @abstractmethod
    async def create_preset(self, preset_data: ShippingBoxPresetSchema) -> ShippingBoxPreset:
        """Crea un nuovo preset"""
        pass

    @abstractmethod
    async def update_preset(self, preset_id: int, preset_data: ShippingBoxPresetUpdateSchema) -> ShippingBoxPreset:
        """Aggiorna un preset esistente"""
        pass

    @abstractmethod
    async def get_preset(self, preset_id: int) -> ShippingBoxPreset:
        """Ottiene un preset per ID"""
        pass

    @abstractmethod
    async def list_presets(self) -> List[ShippingBoxPreset]:
        """Preset ordinati per nome"""
        pass

    @abstractmethod
    async def delete_preset(self, preset_id: int) -> bool:
        """Elimina un preset congelando le dimensioni dei colli che lo usano"""
        pass
