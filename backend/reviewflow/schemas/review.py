"""Pydantic schemas for review links and client feedback."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from reviewflow.models.feedback import FeedbackDecision
from reviewflow.models.parent import ParentKind, ParentStatus
from reviewflow.schemas.delivery import DeliveryResponse
from reviewflow.schemas.parent import ItemProgressResponse


class ReviewLinkCreate(BaseModel):
    """Schema for issuing a review link."""
    ttl_seconds: Optional[int] = Field(None, gt=0)
    issued_by: Optional[str] = Field(None, max_length=36)


class ReviewLinkIssued(BaseModel):
    """Returned once at issue time. The token is not stored and cannot be fetched again."""
    link_id: str
    delivery_id: str
    token: str
    expires_at: datetime


class ReviewLinkInfo(BaseModel):
    id: str
    expires_at: datetime
    is_active: bool
    views_count: int
    last_viewed_at: Optional[datetime]

    model_config = {"from_attributes": True}


class ReviewParentSummary(BaseModel):
    id: str
    title: str
    kind: ParentKind
    status: ParentStatus
    revision_count: int

    model_config = {"from_attributes": True}


class ReviewResolution(BaseModel):
    """What the review page renders for a token."""
    valid: bool
    reason: Optional[str] = None
    link: Optional[ReviewLinkInfo] = None
    delivery: Optional[DeliveryResponse] = None
    parent: Optional[ReviewParentSummary] = None
    batch: List[DeliveryResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class FeedbackCreate(BaseModel):
    """Schema for a client decision."""
    decision: FeedbackDecision
    rating: Optional[int] = Field(None, ge=1, le=5)
    feedback_text: Optional[str] = None
    revision_notes: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)
    reviewed_by: Optional[str] = Field(None, max_length=200)


class FeedbackResult(BaseModel):
    """Outcome of a client decision."""
    feedback_id: str
    decision: FeedbackDecision
    new_status: ParentStatus
    revision_count: int
    item_progress: Optional[ItemProgressResponse] = None
