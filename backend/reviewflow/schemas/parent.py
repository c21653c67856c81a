"""Pydantic schemas for Parent validation."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from reviewflow.models.parent import ParentKind, ParentStatus


class ParentCreate(BaseModel):
    """Schema for creating a parent from a descriptor."""
    descriptor: str = Field("", max_length=2000)
    kind: ParentKind = ParentKind.SINGLE
    owner_id: Optional[str] = Field(None, max_length=36)
    title: Optional[str] = Field(None, max_length=200)
    allowed_duration_minutes: Optional[int] = Field(None, gt=0)
    deadline: Optional[datetime] = None


class ParentCancel(BaseModel):
    """Schema for cancelling a parent."""
    reason: Optional[str] = None
    actor: Optional[str] = None


class AdminRevisionRequest(BaseModel):
    """Schema for an internal reviewer sending work back."""
    notes: str = Field(..., min_length=1)
    actor: Optional[str] = None


class LineItemResponse(BaseModel):
    """Schema for line item response."""
    position: int
    item_type: str
    label: str
    pages: Optional[int]

    model_config = {"from_attributes": True}


class ParentResponse(BaseModel):
    """Full parent response schema."""
    id: str
    owner_id: Optional[str]
    title: str
    kind: ParentKind
    descriptor: str
    status: ParentStatus
    revision_count: int
    last_version: int
    allowed_duration_minutes: int
    deadline: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    line_items: List[LineItemResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ItemProgressResponse(BaseModel):
    completed: int
    total: int
    approved_labels: List[str]
    pending_labels: List[str]
    revision_labels: List[str]

    model_config = {"from_attributes": True}


class ParentStatusResponse(BaseModel):
    """Status with derived lateness and bundled progress."""
    parent_id: str
    kind: ParentKind
    status: ParentStatus
    display_status: str
    revision_count: int
    is_late: bool
    seconds_remaining: Optional[float]
    item_progress: Optional[ItemProgressResponse] = None

    model_config = {"from_attributes": True}
