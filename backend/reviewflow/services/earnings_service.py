"""
Earnings derived from approved feedback.

Amounts are never stored. Every read rescans approved feedback rows, keeps
the first approval of each (parent, label) pair and prices it from the
parent's structured line items.
"""

import calendar
import re
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from reviewflow.config import settings
from reviewflow.core.errors import ValidationError
from reviewflow.models.delivery import Delivery
from reviewflow.models.feedback import Feedback, FeedbackDecision
from reviewflow.models.line_item import LineItem
from reviewflow.models.parent import Parent, ParentKind
from reviewflow.services.descriptor_parser import ItemType


@dataclass(frozen=True)
class PricedItem:
    """Pricing inputs of one line item."""
    item_type: str
    label: str
    pages: Optional[int] = None


@dataclass(frozen=True)
class ApprovalRow:
    """One approving feedback joined with its delivery and parent."""
    parent_id: str
    parent_kind: ParentKind
    item_label: Optional[str]
    approved_at: datetime


@dataclass(frozen=True)
class EarningsRecord:
    parent_id: str
    item_label: Optional[str]
    amount: Decimal
    approved_at: datetime


@dataclass(frozen=True)
class EarningsPeriod:
    key: str
    granularity: str  # day|month
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


def price_line_item(
    item: PricedItem,
    unit_price: Optional[Decimal] = None,
    default_pages: Optional[int] = None,
) -> Decimal:
    """
    Price one line item.

    Post and Miniature cost one unit; a carousel costs one unit per two
    pages. Unknown types earn nothing.
    """
    unit_price = unit_price if unit_price is not None else settings.UNIT_PRICE
    default_pages = default_pages if default_pages is not None else settings.CAROUSEL_DEFAULT_PAGES

    if item.item_type == ItemType.CAROUSEL.value:
        pages = item.pages if item.pages is not None else default_pages
        return Decimal(pages) / Decimal(2) * unit_price
    if item.item_type in (ItemType.POST.value, ItemType.MINIATURE.value):
        return unit_price
    return Decimal("0")


def price_approval(
    row: ApprovalRow,
    items: Sequence[PricedItem],
    unit_price: Optional[Decimal] = None,
) -> Decimal:
    """Amount for one approval given the parent's line items."""
    unit_price = unit_price if unit_price is not None else settings.UNIT_PRICE

    if row.parent_kind == ParentKind.SINGLE or row.item_label is None:
        # Whole artifact approved: every parsed item, or one unit if none parsed
        if not items:
            return unit_price
        return sum((price_line_item(item, unit_price) for item in items), Decimal("0"))

    for item in items:
        if item.label == row.item_label:
            return price_line_item(item, unit_price)
    return Decimal("0")


def first_approvals(rows: Iterable[ApprovalRow]) -> List[ApprovalRow]:
    """Keep the earliest approval of each (parent, label) pair."""
    first: Dict[Tuple[str, Optional[str]], ApprovalRow] = {}
    for row in rows:
        key = (row.parent_id, row.item_label)
        if key not in first or row.approved_at < first[key].approved_at:
            first[key] = row
    return sorted(first.values(), key=lambda r: (r.approved_at, r.parent_id, r.item_label or ""))


def compute_earnings(
    rows: Iterable[ApprovalRow],
    items_by_parent: Dict[str, Sequence[PricedItem]],
    unit_price: Optional[Decimal] = None,
) -> List[EarningsRecord]:
    """
    Turn approval rows into priced records, one per (parent, label).

    Pure: rescanning the same rows always yields the same records.
    """
    return [
        EarningsRecord(
            parent_id=row.parent_id,
            item_label=row.item_label,
            amount=price_approval(row, items_by_parent.get(row.parent_id, ()), unit_price),
            approved_at=row.approved_at,
        )
        for row in first_approvals(rows)
    ]


def total_amount(records: Iterable[EarningsRecord]) -> Decimal:
    return sum((record.amount for record in records), Decimal("0"))


def group_by_period(records: Iterable[EarningsRecord], granularity: str = "day") -> Dict[str, Decimal]:
    """Sum records per day (YYYY-MM-DD) or month (YYYY-MM) of first approval."""
    if granularity not in ("day", "month"):
        raise ValidationError("granularity must be 'day' or 'month'")
    fmt = "%Y-%m-%d" if granularity == "day" else "%Y-%m"

    totals: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for record in records:
        totals[record.approved_at.strftime(fmt)] += record.amount
    return dict(sorted(totals.items()))


MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")
DAY_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_period(period: str) -> EarningsPeriod:
    """
    Parse "YYYY-MM" (month) or "YYYY-MM-DD" (day) into a half-open UTC range.

    Raises:
        ValidationError: If the period is malformed
    """
    period = (period or "").strip()
    try:
        match = DAY_PATTERN.match(period)
        if match:
            day = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
            start = datetime(day.year, day.month, day.day)
            return EarningsPeriod(period, "day", start, start + timedelta(days=1))

        match = MONTH_PATTERN.match(period)
        if match:
            year, month = int(match.group(1)), int(match.group(2))
            start = datetime(year, month, 1)
            days = calendar.monthrange(year, month)[1]
            return EarningsPeriod(period, "month", start, start + timedelta(days=days))
    except ValueError:
        pass

    raise ValidationError(f"Invalid period '{period}'. Use YYYY-MM or YYYY-MM-DD")


async def load_approval_rows(db: AsyncSession, owner_id: str) -> List[ApprovalRow]:
    """Every approving feedback on parents owned by owner_id."""
    result = await db.execute(
        select(
            Feedback.parent_id,
            Parent.kind,
            Delivery.item_label,
            Feedback.created_at,
        )
        .join(Delivery, Feedback.delivery_id == Delivery.id)
        .join(Parent, Feedback.parent_id == Parent.id)
        .where(
            Parent.owner_id == owner_id,
            Feedback.decision == FeedbackDecision.APPROVED
        )
    )
    return [
        ApprovalRow(
            parent_id=row.parent_id,
            parent_kind=row.kind,
            item_label=row.item_label,
            approved_at=row.created_at,
        )
        for row in result.all()
    ]


async def load_priced_items(db: AsyncSession, parent_ids: Iterable[str]) -> Dict[str, List[PricedItem]]:
    parent_ids = list(set(parent_ids))
    if not parent_ids:
        return {}

    result = await db.execute(
        select(LineItem)
        .where(LineItem.parent_id.in_(parent_ids))
        .order_by(LineItem.parent_id, LineItem.position)
    )
    items: Dict[str, List[PricedItem]] = defaultdict(list)
    for item in result.scalars().all():
        items[item.parent_id].append(PricedItem(item.item_type, item.label, item.pages))
    return dict(items)


async def get_earnings(db: AsyncSession, owner_id: str, period: str) -> Tuple[EarningsPeriod, List[EarningsRecord]]:
    """
    Earnings records of an owner whose first approval falls in the period.

    Args:
        db: Database session
        owner_id: Parent owner (assignee) id
        period: "YYYY-MM" or "YYYY-MM-DD"

    Returns:
        The parsed period and its records (sum them with total_amount)

    Raises:
        ValidationError: If the period is malformed
    """
    parsed = parse_period(period)
    rows = await load_approval_rows(db, owner_id)
    items = await load_priced_items(db, (row.parent_id for row in rows))

    # Deduplicate across all history first so a label counts in the period of its first approval only
    records = compute_earnings(rows, items)
    return parsed, [record for record in records if parsed.contains(record.approved_at)]
