"""
OrderShipments Router: colli di un ordine, quotazioni, acquisto e stato etichetta
"""
from typing import Optional
from fastapi import APIRouter, Depends, status, Path
from src.services.interfaces.order_shipment_service_interface import IOrderShipmentService
from src.services.interfaces.shipment_quote_service_interface import IShipmentQuoteService
from src.services.interfaces.label_purchase_service_interface import ILabelPurchaseService
from src.services.interfaces.label_status_service_interface import ILabelStatusService
from src.schemas.order_shipment_schema import (
    OrderShipmentSchema,
    OrderShipmentUpdateSchema,
    OrderShipmentsResponseSchema,
    OrderShipmentMutationResponseSchema
)
from src.schemas.shipment_quote_schema import (
    ShipmentQuoteRequestSchema,
    ShipmentQuotesResponseSchema,
    BuyLabelSchema,
    LabelPurchaseResponseSchema,
    LabelStatusResponseSchema
)
from src.core.dependencies import db_dependency, gateway_dependency
from src.services.routers.auth_service import authorize, get_current_user
from src.services.core.wrap import check_authentication

router = APIRouter(
    prefix="/api/v1/orders/{order_id}/shipments",
    tags=["OrderShipment"]
)


def _container():
    from src.core.container_config import get_configured_container
    return get_configured_container()


def get_order_shipment_service(db: db_dependency) -> IOrderShipmentService:
    """Dependency injection per OrderShipment Service"""
    return _container().resolve_with_session(IOrderShipmentService, db)


def get_shipment_quote_service(db: db_dependency, carrier_gateway: gateway_dependency) -> IShipmentQuoteService:
    return _container().resolve_with_session(IShipmentQuoteService, db, carrier_gateway=carrier_gateway)


def get_label_purchase_service(db: db_dependency, carrier_gateway: gateway_dependency) -> ILabelPurchaseService:
    return _container().resolve_with_session(ILabelPurchaseService, db, carrier_gateway=carrier_gateway)


def get_label_status_service(db: db_dependency, carrier_gateway: gateway_dependency) -> ILabelStatusService:
    return _container().resolve_with_session(ILabelStatusService, db, carrier_gateway=carrier_gateway)


@router.get("/", status_code=status.HTTP_200_OK, response_model=OrderShipmentsResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['R'])
async def get_order_shipments(
    user: dict = Depends(get_current_user),
    order_shipment_service: IOrderShipmentService = Depends(get_order_shipment_service),
    order_id: int = Path(gt=0)
):
    """
    Restituisce i colli dell'ordine ordinati per parcel_index, con riepilogo.

    - **order_id**: Identificativo dell'ordine
    """
    return await order_shipment_service.list_shipments(order_id)


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=OrderShipmentMutationResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['C'])
async def create_order_shipment(
    shipment_data: OrderShipmentSchema,
    user: dict = Depends(get_current_user),
    order_shipment_service: IOrderShipmentService = Depends(get_order_shipment_service),
    order_id: int = Path(gt=0)
):
    """
    Aggiunge un collo all'ordine: preset scatola oppure tutte e tre le dimensioni custom.
    """
    return await order_shipment_service.create_shipment(order_id, shipment_data)


@router.put("/{shipment_id}", status_code=status.HTTP_200_OK, response_model=OrderShipmentMutationResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['U'])
async def update_order_shipment(
    shipment_data: OrderShipmentUpdateSchema,
    user: dict = Depends(get_current_user),
    order_shipment_service: IOrderShipmentService = Depends(get_order_shipment_service),
    order_id: int = Path(gt=0),
    shipment_id: int = Path(gt=0)
):
    """
    Aggiornamento parziale del collo. Rifiutato se l'etichetta è già generata.
    """
    return await order_shipment_service.update_shipment(order_id, shipment_id, shipment_data)


@router.delete("/{shipment_id}", status_code=status.HTTP_200_OK, response_model=OrderShipmentsResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['D'])
async def delete_order_shipment(
    user: dict = Depends(get_current_user),
    order_shipment_service: IOrderShipmentService = Depends(get_order_shipment_service),
    order_id: int = Path(gt=0),
    shipment_id: int = Path(gt=0)
):
    """
    Elimina il collo e ricompatta la numerazione degli altri colli.
    """
    return await order_shipment_service.delete_shipment(order_id, shipment_id)


@router.post("/{shipment_id}/quotes", status_code=status.HTTP_200_OK, response_model=ShipmentQuotesResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['R'])
async def get_shipment_quotes(
    user: dict = Depends(get_current_user),
    shipment_quote_service: IShipmentQuoteService = Depends(get_shipment_quote_service),
    order_id: int = Path(gt=0),
    shipment_id: int = Path(gt=0),
    quote_request: Optional[ShipmentQuoteRequestSchema] = None
):
    """
    Quotazioni del vettore per il collo (cache per firma della richiesta).

    - **force_refresh**: ignora la cache e interroga il vettore
    """
    force_refresh = quote_request.force_refresh if quote_request else False
    return await shipment_quote_service.get_quotes(order_id, shipment_id, force_refresh)


@router.post("/{shipment_id}/buy", status_code=status.HTTP_200_OK, response_model=LabelPurchaseResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['C'])
async def buy_shipment_label(
    user: dict = Depends(get_current_user),
    label_purchase_service: ILabelPurchaseService = Depends(get_label_purchase_service),
    order_id: int = Path(gt=0),
    shipment_id: int = Path(gt=0),
    buy_data: Optional[BuyLabelSchema] = None
):
    """
    Acquista l'etichetta del collo.

    - **quote_selected_id**: quotazione da acquistare (deve essere nella cache valida)
    - **refresh**: senza quote_selected_id, acquista la tariffa più economica di una quotazione nuova
    - senza nessuno dei due si usa la selezione salvata sul collo (get quotes), rivalidata sulla cache
    """
    buy_data = buy_data or BuyLabelSchema()
    return await label_purchase_service.buy_label(
        order_id,
        shipment_id,
        quote_selected_id=buy_data.quote_selected_id,
        refresh=buy_data.refresh
    )


@router.get("/{shipment_id}/label-status", status_code=status.HTTP_200_OK, response_model=LabelStatusResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['R'])
async def get_shipment_label_status(
    user: dict = Depends(get_current_user),
    label_status_service: ILabelStatusService = Depends(get_label_status_service),
    order_id: int = Path(gt=0),
    shipment_id: int = Path(gt=0)
):
    """
    Allinea lo stato dell'etichetta con il vettore.
    """
    return await label_status_service.refresh_label_status(order_id, shipment_id)
