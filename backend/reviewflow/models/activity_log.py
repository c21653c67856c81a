"""Activity log database model."""

from datetime import datetime

from sqlalchemy import String, Integer, TIMESTAMP, Index
from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database import Base


class ActivityLog(Base):
    """Activity log model for auditing every workflow event."""

    __tablename__ = "activity_log"

    # Primary Key
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )

    # Event Details
    event_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True
    )

    # Kept as plain ids so audit rows survive deletes
    parent_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    delivery_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    actor: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Event Data
    data: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict
    )

    # Timestamp
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=datetime.utcnow,
        index=True
    )

    # Additional indexes for performance
    __table_args__ = (
        Index('idx_activity_parent', 'parent_id', 'created_at'),
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, type={self.event_type}, created_at={self.created_at})>"
