"""Deliveries API router: issuing review links."""

from datetime import timedelta

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database import get_db
from reviewflow.schemas.review import ReviewLinkCreate, ReviewLinkIssued
from reviewflow.services.review_link_service import issue_review_link

router = APIRouter()


@router.post(
    "/{delivery_id}/review-links",
    response_model=ReviewLinkIssued,
    status_code=status.HTTP_201_CREATED
)
async def issue_review_link_endpoint(
    delivery_id: str,
    link_data: ReviewLinkCreate | None = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Issue a review link for a delivery and move the parent to client review.

    The token in the response is the only copy; store or send it right away.
    Any earlier active link for the same delivery stops working.
    """
    link_data = link_data or ReviewLinkCreate()
    ttl = timedelta(seconds=link_data.ttl_seconds) if link_data.ttl_seconds else None

    issued = await issue_review_link(db, delivery_id, ttl=ttl, issued_by=link_data.issued_by)
    return ReviewLinkIssued(
        link_id=issued.link.id,
        delivery_id=issued.link.delivery_id,
        token=issued.token,
        expires_at=issued.expires_at,
    )
