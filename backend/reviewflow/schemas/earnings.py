"""Pydantic schemas for earnings reports."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class EarningsRecordResponse(BaseModel):
    parent_id: str
    item_label: Optional[str]
    amount: Decimal
    approved_at: datetime

    model_config = {"from_attributes": True}


class EarningsResponse(BaseModel):
    """Earnings of one owner over a month or a day."""
    owner_id: str
    period: str
    granularity: str  # day|month
    total: Decimal
    records: List[EarningsRecordResponse] = Field(default_factory=list)
    by_day: Dict[str, Decimal] = Field(default_factory=dict)
