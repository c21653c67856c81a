"""Business logic services package."""

from reviewflow.services.descriptor_parser import parse_descriptor, ParsedItem, ItemType
from reviewflow.services.parent_service import (
    create_parent,
    get_parent_by_id,
    start_parent,
    cancel_parent,
    request_admin_revision,
    get_status,
)
from reviewflow.services.delivery_service import (
    DeliveryPayload,
    submit_delivery,
    list_deliveries,
    latest_batch,
)
from reviewflow.services.review_link_service import issue_review_link, resolve_review_link
from reviewflow.services.feedback_service import FeedbackFields, submit_feedback
from reviewflow.services.earnings_service import (
    price_line_item,
    compute_earnings,
    get_earnings,
    group_by_period,
    total_amount,
)

__all__ = [
    # Descriptor parser
    "parse_descriptor",
    "ParsedItem",
    "ItemType",
    # Parent service
    "create_parent",
    "get_parent_by_id",
    "start_parent",
    "cancel_parent",
    "request_admin_revision",
    "get_status",
    # Delivery service
    "DeliveryPayload",
    "submit_delivery",
    "list_deliveries",
    "latest_batch",
    # Review link service
    "issue_review_link",
    "resolve_review_link",
    # Feedback service
    "FeedbackFields",
    "submit_feedback",
    # Earnings service
    "price_line_item",
    "compute_earnings",
    "get_earnings",
    "group_by_period",
    "total_amount",
]
