"""Review link database model."""

from datetime import datetime
import uuid

from sqlalchemy import String, Integer, Boolean, ForeignKey, TIMESTAMP, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database import Base


class ReviewLink(Base):
    """Time-boxed capability letting an external reviewer see one delivery and decide on it."""

    __tablename__ = "review_links"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
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

    # SHA-256 of the token; the token itself is only returned at issue time
    token_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True
    )

    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    deactivated_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)

    # View tracking (best-effort)
    views_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_viewed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=datetime.utcnow
    )

    # Optimistic concurrency
    row_version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": row_version}

    # At most one active link per delivery
    __table_args__ = (
        Index(
            "uq_review_links_active_delivery",
            "delivery_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def __repr__(self) -> str:
        return f"<ReviewLink(id={self.id}, delivery_id={self.delivery_id}, active={self.is_active})>"
