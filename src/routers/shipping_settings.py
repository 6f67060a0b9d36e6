"""
ShippingSettings Router: indirizzo di partenza e preset scatola
"""
from fastapi import APIRouter, Depends, status, Path
from src.services.interfaces.shipping_settings_service_interface import IShippingSettingsService
from src.schemas.shipping_settings_schema import (
    ShipFromSchema,
    ShipFromResponseSchema,
    ShippingBoxPresetSchema,
    ShippingBoxPresetUpdateSchema,
    ShippingBoxPresetResponseSchema,
    AllShippingBoxPresetsResponseSchema,
    ShippingSettingsResponseSchema
)
from src.core.dependencies import db_dependency
from src.services.routers.auth_service import authorize, get_current_user
from src.services.core.wrap import check_authentication

router = APIRouter(
    prefix="/api/v1/settings/shipping",
    tags=["ShippingSettings"]
)


def get_shipping_settings_service(db: db_dependency) -> IShippingSettingsService:
    """Dependency injection per ShippingSettings Service"""
    from src.core.container_config import get_configured_container
    configured_container = get_configured_container()
    return configured_container.resolve_with_session(IShippingSettingsService, db)


@router.get("/", status_code=status.HTTP_200_OK, response_model=ShippingSettingsResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['R'])
async def get_shipping_settings(
    user: dict = Depends(get_current_user),
    shipping_settings_service: IShippingSettingsService = Depends(get_shipping_settings_service)
):
    """
    Restituisce indirizzo di partenza e preset scatola.
    """
    return await shipping_settings_service.get_shipping_settings()


@router.get("/ship-from", status_code=status.HTTP_200_OK, response_model=ShipFromResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['R'])
async def get_ship_from(
    user: dict = Depends(get_current_user),
    shipping_settings_service: IShippingSettingsService = Depends(get_shipping_settings_service)
):
    """
    Restituisce l'indirizzo di partenza. Se non configurato tutti i campi sono null.
    """
    return await shipping_settings_service.read_ship_from()


@router.put("/ship-from", status_code=status.HTTP_200_OK, response_model=ShipFromResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['U'])
async def update_ship_from(
    ship_from_data: ShipFromSchema,
    user: dict = Depends(get_current_user),
    shipping_settings_service: IShippingSettingsService = Depends(get_shipping_settings_service)
):
    """
    Sostituisce l'indirizzo di partenza.

    - **country**: codice ISO a 2 lettere (default US)
    - **state**: per gli Stati Uniti, sigla a 2 lettere
    """
    return await shipping_settings_service.update_ship_from(ship_from_data)


@router.get("/box-presets", status_code=status.HTTP_200_OK, response_model=AllShippingBoxPresetsResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['R'])
async def get_all_box_presets(
    user: dict = Depends(get_current_user),
    shipping_settings_service: IShippingSettingsService = Depends(get_shipping_settings_service)
):
    """
    Restituisce tutti i preset scatola ordinati per nome.
    """
    presets = await shipping_settings_service.list_presets()
    return {"box_presets": presets, "total": len(presets)}


@router.get("/box-presets/{preset_id}", status_code=status.HTTP_200_OK, response_model=ShippingBoxPresetResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['R'])
async def get_box_preset_by_id(
    user: dict = Depends(get_current_user),
    shipping_settings_service: IShippingSettingsService = Depends(get_shipping_settings_service),
    preset_id: int = Path(gt=0)
):
    """
    Restituisce un singolo preset scatola.

    - **preset_id**: Identificativo del preset
    """
    return await shipping_settings_service.get_preset(preset_id)


@router.post("/box-presets", status_code=status.HTTP_201_CREATED, response_model=ShippingBoxPresetResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['C'])
async def create_box_preset(
    preset_data: ShippingBoxPresetSchema,
    user: dict = Depends(get_current_user),
    shipping_settings_service: IShippingSettingsService = Depends(get_shipping_settings_service)
):
    """
    Crea un nuovo preset scatola (nome univoco, dimensioni in pollici, peso in libbre).
    """
    return await shipping_settings_service.create_preset(preset_data)


@router.put("/box-presets/{preset_id}", status_code=status.HTTP_200_OK, response_model=ShippingBoxPresetResponseSchema)
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['U'])
async def update_box_preset(
    preset_data: ShippingBoxPresetUpdateSchema,
    user: dict = Depends(get_current_user),
    shipping_settings_service: IShippingSettingsService = Depends(get_shipping_settings_service),
    preset_id: int = Path(gt=0)
):
    """
    Aggiorna un preset scatola. I colli che lo usano seguono le nuove dimensioni.
    """
    return await shipping_settings_service.update_preset(preset_id, preset_data)


@router.delete("/box-presets/{preset_id}", status_code=status.HTTP_200_OK, response_description="Preset eliminato correttamente")
@check_authentication
@authorize(roles_permitted=['ADMIN'], permissions_required=['D'])
async def delete_box_preset(
    user: dict = Depends(get_current_user),
    shipping_settings_service: IShippingSettingsService = Depends(get_shipping_settings_service),
    preset_id: int = Path(gt=0)
):
    """
    Elimina un preset. Le dimensioni dei colli che lo usavano vengono congelate.
    """
    await shipping_settings_service.delete_preset(preset_id)
    return {"message": "Preset eliminato correttamente"}
