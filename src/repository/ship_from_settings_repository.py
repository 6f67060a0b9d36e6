"""
ShipFromSettings Repository: record singleton con indirizzo di partenza
"""
from typing import Optional, Dict, Any
from sqlalchemy.orm import Session
from src.models.ship_from_settings import ShipFromSettings, SHIP_FROM_SETTINGS_ID
from src.repository.interfaces.ship_from_settings_repository_interface import IShipFromSettingsRepository
from src.core.base_repository import BaseRepository
from src.core.exceptions import InfrastructureException
from src.services.core.tool import utc_now

SHIP_FROM_FIELDS = ("name", "company", "address1", "address2", "city", "state", "postal", "country", "phone")


class ShipFromSettingsRepository(BaseRepository[ShipFromSettings, int], IShipFromSettingsRepository):
    """Repository del singleton ShipFromSettings"""

    def __init__(self, session: Session):
        super().__init__(session, ShipFromSettings)

    def get_settings(self) -> Optional[ShipFromSettings]:
        return self.get_by_id(SHIP_FROM_SETTINGS_ID)

    def replace_settings(self, values: Dict[str, Any]) -> ShipFromSettings:
        """I campi non forniti vengono azzerati (sostituzione integrale)"""
        try:
            settings = self.get_settings()
            if settings is None:
                settings = ShipFromSettings(id_ship_from_settings=SHIP_FROM_SETTINGS_ID)
                self._session.add(settings)
            for field_name in SHIP_FROM_FIELDS:
                setattr(settings, field_name, values.get(field_name))
            if not settings.country:
                settings.country = "US"
            settings.updated_at = utc_now()
            self._session.commit()
            self._session.refresh(settings)
            return settings
        except Exception as e:
            self._session.rollback()
            raise InfrastructureException(f"Database error saving ship-from settings: {str(e)}")
