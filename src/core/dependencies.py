"""
Dependency injection per FastAPI seguendo DIP
"""
from typing import Annotated
from fastapi import Depends
from sqlalchemy.orm import Session
from src.database import get_db
from src.services.ecommerce.shipments.carrier_gateway import ICarrierGateway

# Type aliases per le dipendenze
db_dependency = Annotated[Session, Depends(get_db)]


def get_carrier_gateway() -> ICarrierGateway:
    """Gateway vettore registrato nel container (sovrascrivibile nei test)"""
    from src.core.container_config import get_configured_container
    return get_configured_container().resolve(ICarrierGateway)


gateway_dependency = Annotated[ICarrierGateway, Depends(get_carrier_gateway)]
