"""Client feedback database model."""

from datetime import datetime
from enum import Enum
from typing import List
import uuid

from sqlalchemy import String, Text, Integer, ForeignKey, TIMESTAMP, JSON, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database import Base


class FeedbackDecision(str, Enum):
    """The only decisions a reviewer can record."""
    APPROVED = "approved"
    REVISION_REQUESTED = "revision_requested"


class Feedback(Base):
    """The client's verdict on one delivery, recorded through one review link."""

    __tablename__ = "feedback"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Exactly one feedback per review link
    review_link_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("review_links.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    delivery_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("deliveries.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    parent_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("parents.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    decision: Mapped[FeedbackDecision] = mapped_column(
        SQLEnum(FeedbackDecision),
        nullable=False,
        index=True
    )
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-5
    feedback_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    revision_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    attachments: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    reviewed_by: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Doubles as approved_at for earnings
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=datetime.utcnow,
        index=True
    )

    def __repr__(self) -> str:
        return f"<Feedback(id={self.id}, delivery_id={self.delivery_id}, decision={self.decision})>"
