from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.get_actor import get_actor
from app.utils.response import success_response, APIResponse
from app.models.enums.production_status import JourneyStatus

from app.schemas.production.production_schemas import (
    JourneyCreate,
    JourneyResourcesUpdate,
    JourneyStatusUpdate,
    JourneyStepUpdate,
    JourneyOut,
    JourneyListData,
)

from app.services.production.journey_service import (
    create_journey,
    get_journey,
    list_journeys,
    assign_resources,
    update_journey_step,
    set_journey_status,
)

router = APIRouter(
    prefix="/journeys",
    tags=["Production Journeys"],
)


@router.post("", response_model=APIResponse[JourneyOut])
async def create_journey_api(
    payload: JourneyCreate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Production journey created successfully",
        await create_journey(db, payload, actor),
    )


@router.get("", response_model=APIResponse[JourneyListData])
async def list_journeys_api(
    db: AsyncSession = Depends(get_db),
    status: JourneyStatus | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    return success_response(
        "Production journeys retrieved successfully",
        await list_journeys(db=db, status=status, page=page, page_size=page_size),
    )


@router.get("/{journey_id}", response_model=APIResponse[JourneyOut])
async def get_journey_api(
    journey_id: int,
    db: AsyncSession = Depends(get_db),
):
    return success_response(
        "Production journey retrieved successfully",
        await get_journey(db, journey_id),
    )


@router.patch("/{journey_id}/resources", response_model=APIResponse[JourneyOut])
async def assign_resources_api(
    journey_id: int,
    payload: JourneyResourcesUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Journey resources updated",
        await assign_resources(db, journey_id, payload, actor),
    )


@router.patch("/{journey_id}/steps/{step_id}", response_model=APIResponse[JourneyOut])
async def update_journey_step_api(
    journey_id: int,
    step_id: int,
    payload: JourneyStepUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Journey step updated",
        await update_journey_step(db, journey_id, step_id, payload, actor),
    )


@router.patch("/{journey_id}/status", response_model=APIResponse[JourneyOut])
async def set_journey_status_api(
    journey_id: int,
    payload: JourneyStatusUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Journey status updated",
        await set_journey_status(db, journey_id, payload, actor),
    )
