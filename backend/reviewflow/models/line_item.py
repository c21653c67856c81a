"""Line item database model."""

import uuid

from sqlalchemy import String, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reviewflow.database import Base


class LineItem(Base):
    """One billable, individually reviewable unit parsed from a descriptor. Never updated."""

    __tablename__ = "line_items"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    parent_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("parents.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)  # post|miniature|carousel
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    pages: Mapped[int | None] = mapped_column(Integer, nullable=True)  # carousels only

    parent: Mapped["Parent"] = relationship(
        "Parent",
        back_populates="line_items"
    )

    __table_args__ = (
        UniqueConstraint("parent_id", "label", name="uq_line_items_parent_label"),
    )

    def __repr__(self) -> str:
        return f"<LineItem(parent_id={self.parent_id}, label={self.label})>"
