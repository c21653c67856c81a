"""Delivery database model."""

from datetime import datetime
import uuid

from sqlalchemy import String, Text, Integer, ForeignKey, TIMESTAMP, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from reviewflow.database import Base


class Delivery(Base):
    """One versioned submission of work against a parent or one of its item labels."""

    __tablename__ = "deliveries"

    # Primary Key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Foreign Key
    parent_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("parents.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Versioning (strictly increasing per parent)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Payload
    payload_type: Mapped[str] = mapped_column(
        String(10),
        nullable=False
    )  # file|link
    payload_ref: Mapped[str] = mapped_column(Text, nullable=False)
    link_type: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True
    )  # drive|frame|dropbox|other

    # Bundled parents only
    item_label: Mapped[str | None] = mapped_column(String(100), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    # Timestamp
    submitted_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("parent_id", "version_number", name="uq_deliveries_parent_version"),
        Index("idx_deliveries_parent_label", "parent_id", "item_label"),
    )

    def __repr__(self) -> str:
        return f"<Delivery(id={self.id}, parent_id={self.parent_id}, v={self.version_number})>"
