"""Pydantic schemas package."""

from reviewflow.schemas.parent import (
    ParentCreate,
    ParentCancel,
    AdminRevisionRequest,
    LineItemResponse,
    ParentResponse,
    ItemProgressResponse,
    ParentStatusResponse,
)
from reviewflow.schemas.delivery import (
    DeliveryCreate,
    DeliveryResponse,
)
from reviewflow.schemas.review import (
    ReviewLinkCreate,
    ReviewLinkIssued,
    ReviewResolution,
    FeedbackCreate,
    FeedbackResult,
)
from reviewflow.schemas.earnings import (
    EarningsRecordResponse,
    EarningsResponse,
)

__all__ = [
    # Parent schemas
    "ParentCreate",
    "ParentCancel",
    "AdminRevisionRequest",
    "LineItemResponse",
    "ParentResponse",
    "ItemProgressResponse",
    "ParentStatusResponse",
    # Delivery schemas
    "DeliveryCreate",
    "DeliveryResponse",
    # Review schemas
    "ReviewLinkCreate",
    "ReviewLinkIssued",
    "ReviewResolution",
    "FeedbackCreate",
    "FeedbackResult",
    # Earnings schemas
    "EarningsRecordResponse",
    "EarningsResponse",
]
