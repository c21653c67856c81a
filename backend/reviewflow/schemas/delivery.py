"""Pydantic schemas for Delivery validation."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DeliveryCreate(BaseModel):
    """Schema for submitting a new version of work."""
    payload_ref: str = Field(..., min_length=1)
    payload_type: str = Field("file", pattern="^(file|link)$")
    link_type: Optional[str] = Field(None, pattern="^(drive|frame|dropbox|other)$")
    item_label: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    submitted_by: Optional[str] = Field(None, max_length=36)


class DeliveryResponse(BaseModel):
    """Schema for delivery response."""
    id: str
    parent_id: str
    version_number: int
    payload_type: str
    payload_ref: str
    link_type: Optional[str]
    item_label: Optional[str]
    notes: Optional[str]
    submitted_by: Optional[str]
    submitted_at: datetime

    model_config = {"from_attributes": True}
