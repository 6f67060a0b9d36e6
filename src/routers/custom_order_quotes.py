"""
CustomOrderQuotes Router: quotazioni senza ordine
"""
from fastapi import APIRouter, Depends, status
from src.services.interfaces.custom_order_quote_service_interface import ICustomOrderQuoteService
from src.schemas.shipment_quote_schema import CustomOrderQuoteRequestSchema, CustomOrderQuoteResponseSchema
from src.core.dependencies import db_dependency, gateway_dependency
from src.services.routers.auth_service import authorize, get_current_user
from src.services.core.wrap import check_authentication

router = APIRouter(
    prefix="/api/v1/custom-orders",
    tags=["CustomOrderQuote"]
)


def get_custom_order_quote_service(db: db_dependency, carrier_gateway: gateway_dependency) -> ICustomOrderQuoteService:
    """Dependency injection per CustomOrderQuote Service"""
    from src.core.container_config import get_configured_container
    configured_container = get_configured_container()
    return configured_container.resolve_with_session(ICustomOrderQuoteService, db, carrier_gateway=carrier_gateway)


@router.post("/quotes", status_code=status.HTTP_200_OK, response_model=CustomOrderQuoteResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['R'])
async def get_custom_order_quotes(
    quote_request: CustomOrderQuoteRequestSchema,
    user: dict = Depends(get_current_user),
    custom_order_quote_service: ICustomOrderQuoteService = Depends(get_custom_order_quote_service)
):
    """
    Quotazioni per destinazione e collo arbitrari, senza creare record.

    - **destination**: indirizzo di destinazione
    - **parcel**: id_box_preset oppure dimensioni custom, con peso
    - **items**: articoli opzionali per il valore dichiarato
    """
    return await custom_order_quote_service.get_adhoc_quotes(quote_request)
