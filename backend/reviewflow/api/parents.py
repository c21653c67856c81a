"""Parents API router: lifecycle, status and versioned deliveries."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database import get_db
from reviewflow.schemas.delivery import DeliveryCreate, DeliveryResponse
from reviewflow.schemas.parent import (
    AdminRevisionRequest,
    ParentCancel,
    ParentCreate,
    ParentResponse,
    ParentStatusResponse,
)
from reviewflow.services.delivery_service import DeliveryPayload, list_deliveries, submit_delivery
from reviewflow.services.parent_service import (
    cancel_parent,
    create_parent,
    get_parent_or_404,
    get_status,
    request_admin_revision,
    start_parent,
)

router = APIRouter()


@router.post("", response_model=ParentResponse, status_code=status.HTTP_201_CREATED)
async def create_parent_endpoint(
    parent_data: ParentCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Create a parent. Its line items are parsed from the descriptor once and never change.

    Bundled parents must have at least one recognized item, e.g.
    ``[2x Post + 1x Carousel 6p]``.
    """
    return await create_parent(
        db,
        descriptor=parent_data.descriptor,
        kind=parent_data.kind,
        owner_id=parent_data.owner_id,
        title=parent_data.title,
        allowed_duration_minutes=parent_data.allowed_duration_minutes,
        deadline=parent_data.deadline,
    )


@router.get("/{parent_id}", response_model=ParentResponse)
async def get_parent(parent_id: str, db: AsyncSession = Depends(get_db)):
    """Get parent details with line items."""
    return await get_parent_or_404(db, parent_id)


@router.get("/{parent_id}/status", response_model=ParentStatusResponse)
async def get_parent_status(parent_id: str, db: AsyncSession = Depends(get_db)):
    """
    Get stored status, display status (``late`` when past the allowance),
    revision count and, for bundled parents, item progress.
    """
    return ParentStatusResponse.model_validate(await get_status(db, parent_id))


@router.post("/{parent_id}/start", response_model=ParentResponse)
async def start_parent_endpoint(parent_id: str, db: AsyncSession = Depends(get_db)):
    """Start work on a new parent, or resume after a revision request."""
    return await start_parent(db, parent_id)


@router.post("/{parent_id}/cancel", response_model=ParentResponse)
async def cancel_parent_endpoint(
    parent_id: str,
    cancel_data: ParentCancel | None = None,
    db: AsyncSession = Depends(get_db)
):
    """Cancel a parent. Active review links stop accepting feedback."""
    cancel_data = cancel_data or ParentCancel()
    return await cancel_parent(db, parent_id, actor=cancel_data.actor, reason=cancel_data.reason)


@router.post("/{parent_id}/admin-revision", response_model=ParentResponse)
async def admin_revision_endpoint(
    parent_id: str,
    revision_data: AdminRevisionRequest,
    db: AsyncSession = Depends(get_db)
):
    """Internal reviewer sends the latest submission back before the client sees it."""
    return await request_admin_revision(db, parent_id, revision_data.notes, actor=revision_data.actor)


@router.post(
    "/{parent_id}/deliveries",
    response_model=DeliveryResponse,
    status_code=status.HTTP_201_CREATED
)
async def submit_delivery_endpoint(
    parent_id: str,
    delivery_data: DeliveryCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a new version of work.

    Bundled parents require ``item_label`` naming one of their line items.
    Concurrent submissions for one parent fail with 409 and ``retryable``.
    """
    payload = DeliveryPayload(
        payload_ref=delivery_data.payload_ref,
        payload_type=delivery_data.payload_type,
        link_type=delivery_data.link_type,
        notes=delivery_data.notes,
    )
    return await submit_delivery(
        db,
        parent_id,
        payload,
        item_label=delivery_data.item_label,
        submitted_by=delivery_data.submitted_by,
    )


@router.get("/{parent_id}/deliveries", response_model=List[DeliveryResponse])
async def list_deliveries_endpoint(parent_id: str, db: AsyncSession = Depends(get_db)):
    """List every delivery of a parent in version order."""
    return await list_deliveries(db, parent_id)
