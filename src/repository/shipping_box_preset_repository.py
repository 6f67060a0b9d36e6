"""
ShippingBoxPreset Repository seguendo SOLID
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func
from src.models.shipping_box_preset import ShippingBoxPreset
from src.repository.interfaces.shipping_box_preset_repository_interface import IShippingBoxPresetRepository
from src.core.base_repository import BaseRepository
from src.core.exceptions import InfrastructureException


class ShippingBoxPresetRepository(BaseRepository[ShippingBoxPreset, int], IShippingBoxPresetRepository):
    """ShippingBoxPreset Repository seguendo SOLID"""

    def __init__(self, session: Session):
        super().__init__(session, ShippingBoxPreset)

    def get_all(self, **filters) -> List[ShippingBoxPreset]:
        """Ottiene tutti i preset ordinati per nome"""
        try:
            query = self._session.query(ShippingBoxPreset)
            query = self._apply_filters(query, filters)
            return query.order_by(
                func.lower(ShippingBoxPreset.name),
                ShippingBoxPreset.id_shipping_box_preset
            ).all()
        except Exception as e:
            raise InfrastructureException(f"Database error retrieving {self._model_class.__name__} list: {str(e)}")

    def get_by_name(self, name: str) -> Optional[ShippingBoxPreset]:
        """Ottiene un preset per nome (case insensitive)"""
        try:
            return self._session.query(ShippingBoxPreset).filter(
                func.lower(ShippingBoxPreset.name) == func.lower(name)
            ).first()
        except Exception as e:
            raise InfrastructureException(f"Database error retrieving shipping_box_preset by name: {str(e)}")
