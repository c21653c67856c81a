"""Database models package."""

from reviewflow.models.parent import Parent, ParentKind, ParentStatus
from reviewflow.models.line_item import LineItem
from reviewflow.models.delivery import Delivery
from reviewflow.models.review_link import ReviewLink
from reviewflow.models.feedback import Feedback, FeedbackDecision
from reviewflow.models.activity_log import ActivityLog

__all__ = [
    "Parent",
    "ParentKind",
    "ParentStatus",
    "LineItem",
    "Delivery",
    "ReviewLink",
    "Feedback",
    "FeedbackDecision",
    "ActivityLog",
]
