"""Deliverable parent database model."""

from datetime import datetime
from enum import Enum
from typing import List
import uuid

from sqlalchemy import String, Text, Integer, TIMESTAMP, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reviewflow.database import Base


class ParentKind(str, Enum):
    """Whether a parent is reviewed as one artifact or as bundled items."""
    SINGLE = "single"
    BUNDLED = "bundled"


class ParentStatus(str, Enum):
    """Stored workflow statuses. ``late`` is derived for display, never stored."""
    NEW = "new"
    ACTIVE = "active"
    IN_REVIEW_ADMIN = "review_admin"
    IN_REVIEW_CLIENT = "review_client"
    REVISION_REQUESTED = "revision_requested"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ParentStatus.COMPLETED, ParentStatus.CANCELLED)


class Parent(Base):
    """A unit of work (video, design task or bundle of design items) tracked end-to-end."""

    __tablename__ = "parents"

    # Primary Key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Assignee who earns from approved work (external user id)
    owner_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        index=True
    )

    # Details
    title: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    kind: Mapped[ParentKind] = mapped_column(
        SQLEnum(ParentKind),
        nullable=False
    )
    descriptor: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Status & State
    status: Mapped[ParentStatus] = mapped_column(
        SQLEnum(ParentStatus),
        nullable=False,
        default=ParentStatus.NEW,
        index=True
    )
    revision_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Highest version number handed out so far
    last_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Deadline tracking
    allowed_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=300)
    deadline: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )
    started_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)

    # Optimistic concurrency
    row_version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    line_items: Mapped[List["LineItem"]] = relationship(
        "LineItem",
        back_populates="parent",
        order_by="LineItem.position",
        cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": row_version}

    @property
    def expected_labels(self) -> List[str]:
        return [item.label for item in self.line_items]

    def __repr__(self) -> str:
        return f"<Parent(id={self.id}, kind={self.kind}, status={self.status})>"
