"""
Descriptor parser turning task descriptors into billable line items.

A descriptor looks like ``[2x Post + 1x Miniature + 1x Carousel 4p]``. Each
entry expands to one item per unit of quantity, labelled with the type and a
per-type ordinal counted across the whole descriptor ("Post 1", "Post 2").
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from reviewflow.config import settings
from reviewflow.core.errors import ValidationError

logger = logging.getLogger(__name__)


class ItemType(str, Enum):
    """Billable item types."""
    POST = "post"
    MINIATURE = "miniature"
    CAROUSEL = "carousel"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


# Case-insensitive spellings accepted in descriptors
TYPE_ALIASES: Dict[str, ItemType] = {
    "post": ItemType.POST,
    "miniature": ItemType.MINIATURE,
    "thumbnail": ItemType.MINIATURE,
    "carousel": ItemType.CAROUSEL,
    "carrousel": ItemType.CAROUSEL,
}

ENTRY_PATTERN = re.compile(
    r"^(?:(?P<qty>\d+)\s*x\s*)?(?P<type>[a-z]+)(?:\s+(?P<pages>\d+)\s*p)?$",
    re.IGNORECASE,
)
BRACKETED_PATTERN = re.compile(r"^\[(?P<body>[^\]]*)\]")


@dataclass(frozen=True)
class ParsedItem:
    """One unit of billable work. Identity is the label."""
    item_type: ItemType
    label: str
    position: int
    pages: Optional[int] = None


def _descriptor_body(text: str) -> str:
    text = text.strip()
    match = BRACKETED_PATTERN.match(text)
    if match:
        return match.group("body")
    return text


def parse_descriptor(text: Optional[str]) -> List[ParsedItem]:
    """
    Parse a descriptor into ordered line items.

    Unrecognized entries are skipped with a warning. The result is fully
    determined by the text: entries in textual order, then ordinal within
    the entry.

    Args:
        text: Descriptor text, optionally wrapped in brackets and followed by notes

    Returns:
        Line items in descriptor order

    Raises:
        ValidationError: If an entry or the whole descriptor expands past the item limits
    """
    if not text:
        return []

    items: List[ParsedItem] = []
    counters: Dict[ItemType, int] = {}

    for raw_entry in _descriptor_body(text).split("+"):
        entry = raw_entry.strip()
        if not entry:
            continue

        match = ENTRY_PATTERN.match(entry)
        item_type = TYPE_ALIASES.get(match.group("type").lower()) if match else None
        if item_type is None:
            logger.warning(f"Skipping unrecognized descriptor entry: {entry!r}")
            continue

        quantity = int(match.group("qty")) if match.group("qty") else 1
        if quantity > settings.MAX_ITEM_QUANTITY:
            raise ValidationError(
                f"Descriptor entry {entry!r} exceeds the maximum quantity of {settings.MAX_ITEM_QUANTITY}"
            )
        if len(items) + quantity > settings.MAX_LINE_ITEMS:
            raise ValidationError(f"Descriptor expands to more than {settings.MAX_LINE_ITEMS} line items")

        pages = int(match.group("pages")) if match.group("pages") else None
        if item_type is not ItemType.CAROUSEL:
            pages = None

        for _ in range(quantity):
            counters[item_type] = counters.get(item_type, 0) + 1
            label = f"{item_type.display_name} {counters[item_type]}"
            if pages is not None:
                label = f"{label} {pages}p"
            items.append(ParsedItem(
                item_type=item_type,
                label=label,
                position=len(items),
                pages=pages,
            ))

    return items
