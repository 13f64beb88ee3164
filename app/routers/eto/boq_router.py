from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.get_actor import get_actor
from app.utils.response import success_response, APIResponse

from app.schemas.eto.boq_schemas import (
    BoqCreate,
    BoqItemCreate,
    BoqItemUpdate,
    BoqOut,
    EtoStatusUpdate,
)

from app.services.eto.boq_service import (
    create_boq,
    get_boq,
    add_boq_item,
    update_boq_item,
    remove_boq_item,
    recompute_boq_costs,
    set_eto_status,
)

router = APIRouter(
    prefix="/boqs",
    tags=["BOQ"],
)


@router.post("", response_model=APIResponse[BoqOut])
async def create_boq_api(
    payload: BoqCreate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "BOQ created successfully",
        await create_boq(db, payload, actor),
    )


@router.get("/{boq_id}", response_model=APIResponse[BoqOut])
async def get_boq_api(
    boq_id: int,
    db: AsyncSession = Depends(get_db),
):
    return success_response(
        "BOQ retrieved successfully",
        await get_boq(db, boq_id),
    )


@router.post("/{boq_id}/items", response_model=APIResponse[BoqOut])
async def add_boq_item_api(
    boq_id: int,
    payload: BoqItemCreate,
    version: int = Query(...),
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "BOQ item added",
        await add_boq_item(db, boq_id, payload, version, actor),
    )


@router.patch("/{boq_id}/items/{item_id}", response_model=APIResponse[BoqOut])
async def update_boq_item_api(
    boq_id: int,
    item_id: int,
    payload: BoqItemUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "BOQ item updated",
        await update_boq_item(db, boq_id, item_id, payload, actor),
    )


@router.delete("/{boq_id}/items/{item_id}", response_model=APIResponse[BoqOut])
async def remove_boq_item_api(
    boq_id: int,
    item_id: int,
    version: int = Query(...),
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "BOQ item removed",
        await remove_boq_item(db, boq_id, item_id, version, actor),
    )


@router.post("/{boq_id}/recompute", response_model=APIResponse[BoqOut])
async def recompute_boq_api(
    boq_id: int,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "BOQ costs recomputed",
        await recompute_boq_costs(db, boq_id, actor),
    )


@router.patch("/{boq_id}/eto-status", response_model=APIResponse[BoqOut])
async def set_eto_status_api(
    boq_id: int,
    payload: EtoStatusUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "ETO status updated",
        await set_eto_status(db, boq_id, payload, actor),
    )
