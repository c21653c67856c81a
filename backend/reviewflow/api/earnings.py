"""Earnings API router."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database import get_db
from reviewflow.schemas.earnings import EarningsRecordResponse, EarningsResponse
from reviewflow.services.earnings_service import get_earnings, group_by_period, total_amount

router = APIRouter()


@router.get("/{owner_id}", response_model=EarningsResponse)
async def get_owner_earnings(
    owner_id: str,
    period: str = Query(..., description="YYYY-MM for a month or YYYY-MM-DD for a day"),
    db: AsyncSession = Depends(get_db)
):
    """
    Earnings of an owner for a month or a day.

    Each approved line item counts once, in the period of its first approval.
    """
    parsed, records = await get_earnings(db, owner_id, period)
    return EarningsResponse(
        owner_id=owner_id,
        period=parsed.key,
        granularity=parsed.granularity,
        total=total_amount(records),
        records=[EarningsRecordResponse.model_validate(record) for record in records],
        by_day=group_by_period(records, "day"),
    )
