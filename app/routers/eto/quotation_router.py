from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.get_actor import get_actor
from app.utils.response import success_response, APIResponse
from app.models.enums.quotation_status import QuotationStatus

from app.schemas.eto.quotation_schemas import (
    QuotationCreate,
    QuotationUpdate,
    QuotationOut,
    QuotationListData,
    EngineeringProjectAttach,
    CustomerResponse,
    PurchaseOrderIn,
    SalesOrderConversionIn,
    ConversionOut,
    StageOut,
    NextRevisionOut,
)

from app.services.eto.quotation_service import (
    create_quotation,
    get_quotation,
    list_quotations,
    update_quotation,
    delete_quotation,
    recompute_quotation_costs,
    get_quotation_stage,
    preview_next_revision,
    attach_engineering_project,
)
from app.services.eto.order_conversion_service import (
    send_to_customer,
    record_customer_response,
    mark_po_received,
    convert_to_sales_order,
)

router = APIRouter(
    prefix="/quotations",
    tags=["Quotations"],
)


@router.post(
    "",
    response_model=APIResponse[QuotationOut],
)
async def create_quotation_api(
    payload: QuotationCreate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    quotation = await create_quotation(db, payload, actor)
    return success_response(
        "Quotation created successfully",
        quotation,
    )


@router.get(
    "",
    response_model=APIResponse[QuotationListData],
)
async def list_quotations_api(
    db: AsyncSession = Depends(get_db),
    status: QuotationStatus | None = Query(None, description="Filter by status"),
    converted: bool | None = Query(None, description="Filter by sales-order conversion"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("created_at"),
    order: str = Query("desc"),
):
    data = await list_quotations(
        db=db,
        status=status,
        converted=converted,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        order=order,
    )
    return success_response(
        "Quotations retrieved successfully",
        data,
    )


# Declared before /{quotation_id} so "revisions" is not read as an id.
@router.get(
    "/revisions/next",
    response_model=APIResponse[NextRevisionOut],
)
async def next_revision_api(
    current: str = Query(..., description="Current revision, e.g. 1.2 or Rev B"),
    kind: str = Query("minor", description="minor | major"),
):
    return success_response(
        "Next revision computed",
        preview_next_revision(current, kind),
    )


@router.get(
    "/{quotation_id}",
    response_model=APIResponse[QuotationOut],
)
async def get_quotation_api(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
):
    quotation = await get_quotation(db=db, quotation_id=quotation_id)
    return success_response(
        "Quotation retrieved successfully",
        quotation,
    )


@router.patch(
    "/{quotation_id}",
    response_model=APIResponse[QuotationOut],
)
async def update_quotation_api(
    quotation_id: int,
    payload: QuotationUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    quotation = await update_quotation(
        db=db,
        quotation_id=quotation_id,
        payload=payload,
        actor=actor,
    )
    return success_response(
        "Quotation updated successfully",
        quotation,
    )


@router.delete(
    "/{quotation_id}",
    response_model=APIResponse[QuotationOut],
)
async def delete_quotation_api(
    quotation_id: int,
    version: int = Query(...),
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    quotation = await delete_quotation(db, quotation_id, version, actor)
    return success_response(
        "Quotation deleted successfully",
        quotation,
    )


@router.post(
    "/{quotation_id}/recompute",
    response_model=APIResponse[QuotationOut],
)
async def recompute_quotation_api(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    quotation = await recompute_quotation_costs(db, quotation_id, actor)
    return success_response(
        "Quotation costs recomputed",
        quotation,
    )


@router.get(
    "/{quotation_id}/stage",
    response_model=APIResponse[StageOut],
)
async def quotation_stage_api(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
):
    return success_response(
        "Workflow stage resolved",
        await get_quotation_stage(db, quotation_id),
    )


@router.post(
    "/{quotation_id}/engineering-project",
    response_model=APIResponse[QuotationOut],
)
async def attach_engineering_project_api(
    quotation_id: int,
    payload: EngineeringProjectAttach,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    quotation = await attach_engineering_project(db, quotation_id, payload, actor)
    return success_response(
        "Engineering project linked",
        quotation,
    )


@router.post(
    "/{quotation_id}/send",
    response_model=APIResponse[QuotationOut],
)
async def send_quotation_api(
    quotation_id: int,
    revision_notes: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    quotation = await send_to_customer(db, quotation_id, actor, revision_notes)
    return success_response(
        "Quotation sent to customer",
        quotation,
    )


@router.post(
    "/{quotation_id}/customer-response",
    response_model=APIResponse[QuotationOut],
)
async def customer_response_api(
    quotation_id: int,
    payload: CustomerResponse,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    quotation = await record_customer_response(db, quotation_id, payload, actor)
    return success_response(
        "Customer response recorded",
        quotation,
    )


@router.post(
    "/{quotation_id}/po",
    response_model=APIResponse[QuotationOut],
)
async def receive_po_api(
    quotation_id: int,
    payload: PurchaseOrderIn,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    quotation = await mark_po_received(db, quotation_id, payload, actor)
    return success_response(
        "Purchase order recorded",
        quotation,
    )


@router.post(
    "/{quotation_id}/convert-to-sales-order",
    response_model=APIResponse[ConversionOut],
)
async def convert_to_sales_order_api(
    quotation_id: int,
    payload: SalesOrderConversionIn | None = None,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    result = await convert_to_sales_order(
        db,
        quotation_id,
        payload or SalesOrderConversionIn(),
        actor,
    )
    return success_response(
        "Sales order created" if result.created else "Quotation already converted",
        result,
    )
