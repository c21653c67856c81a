"""Partial completion of bundled parents, derived from feedback rows."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from reviewflow.models.feedback import FeedbackDecision


@dataclass(frozen=True)
class LabelDecision:
    """One feedback row joined with the item label of the delivery it judged."""
    item_label: Optional[str]
    decision: FeedbackDecision
    decided_at: datetime
    version_number: int = 0


@dataclass(frozen=True)
class ItemProgress:
    completed: int
    total: int
    approved_labels: List[str] = field(default_factory=list)
    pending_labels: List[str] = field(default_factory=list)
    revision_labels: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.completed == self.total


def approved_labels(decisions: Iterable[LabelDecision]) -> set:
    """Labels with at least one approving feedback, however many times approved."""
    return {
        d.item_label for d in decisions
        if d.decision == FeedbackDecision.APPROVED and d.item_label is not None
    }


def compute_item_progress(expected_labels: Sequence[str], decisions: Iterable[LabelDecision]) -> ItemProgress:
    """
    Compare approved labels against the expected labels of a parent.

    Labels are evaluated independently: a revision on one label never blocks
    another, and repeated approvals of a label count once.

    Args:
        expected_labels: Labels produced by the descriptor parser, in order
        decisions: Every feedback row for the parent

    Returns:
        Progress with completed/total counts and per-label breakdown
    """
    decisions = list(decisions)
    approved = approved_labels(decisions)

    # Latest decision per label, ordered by delivery version then time
    latest = {}
    for d in sorted(decisions, key=lambda d: (d.version_number, d.decided_at)):
        if d.item_label is not None:
            latest[d.item_label] = d.decision

    done = [label for label in expected_labels if label in approved]
    pending = [label for label in expected_labels if label not in approved]
    revisions = [
        label for label in pending
        if latest.get(label) == FeedbackDecision.REVISION_REQUESTED
    ]

    return ItemProgress(
        completed=len(done),
        total=len(expected_labels),
        approved_labels=done,
        pending_labels=pending,
        revision_labels=revisions,
    )
