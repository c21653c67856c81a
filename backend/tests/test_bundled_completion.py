"""Tests for bundled parents completing item by item."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.core.errors import ValidationError
from reviewflow.models.feedback import FeedbackDecision
from reviewflow.models.parent import ParentKind, ParentStatus
from reviewflow.services.delivery_service import DeliveryPayload, submit_delivery
from reviewflow.services.feedback_service import FeedbackFields, submit_feedback
from reviewflow.services.parent_service import create_parent, get_status, start_parent
from reviewflow.services.progress import LabelDecision, compute_item_progress
from reviewflow.services.review_link_service import issue_review_link, resolve_review_link


T0 = datetime(2026, 3, 2, 10, 0, 0)


def decision(label, approved=True, minutes=0, version=1):
    return LabelDecision(
        item_label=label,
        decision=FeedbackDecision.APPROVED if approved else FeedbackDecision.REVISION_REQUESTED,
        decided_at=T0 + timedelta(minutes=minutes),
        version_number=version,
    )


def test_progress_requires_every_expected_label():
    progress = compute_item_progress(["A", "B"], [decision("A")])

    assert (progress.completed, progress.total) == (1, 2)
    assert not progress.is_complete
    assert progress.pending_labels == ["B"]


@pytest.mark.parametrize("order", [["A", "B"], ["B", "A"]])
def test_completion_is_order_independent(order):
    progress = compute_item_progress(["A", "B"], [decision(label, minutes=i) for i, label in enumerate(order)])

    assert progress.is_complete
    assert progress.approved_labels == ["A", "B"]


def test_duplicate_approvals_do_not_change_other_labels():
    progress = compute_item_progress(["A", "B"], [decision("A"), decision("A", minutes=5, version=2)])

    assert progress.completed == 1
    assert progress.pending_labels == ["B"]


def test_revision_on_one_label_does_not_block_another():
    progress = compute_item_progress(
        ["A", "B"],
        [decision("A", approved=False), decision("B", minutes=1, version=2)],
    )

    assert progress.approved_labels == ["B"]
    assert progress.revision_labels == ["A"]


def test_approval_survives_later_revision_request():
    progress = compute_item_progress(
        ["A"],
        [decision("A", version=1), decision("A", approved=False, minutes=10, version=2)],
    )

    assert progress.is_complete
    assert progress.revision_labels == []


def test_unexpected_labels_are_ignored():
    progress = compute_item_progress(["A"], [decision("Z"), decision(None)])

    assert progress.completed == 0


async def deliver_and_link(db: AsyncSession, parent_id: str, label: str, ref: str):
    delivery = await submit_delivery(db, parent_id, DeliveryPayload(ref), item_label=label)
    issued = await issue_review_link(db, delivery.id)
    return delivery, issued


@pytest.mark.asyncio
async def test_post_and_miniature_scenario(db: AsyncSession):
    parent = await create_parent(db, "1x Post + 1x Miniature", ParentKind.BUNDLED)
    assert parent.expected_labels == ["Post 1", "Miniature 1"]

    # Post 1, first attempt: revision requested
    v1, first_link = await deliver_and_link(db, parent.id, "Post 1", "uploads/post-v1.png")
    assert v1.version_number == 1

    outcome = await submit_feedback(
        db, first_link.token, "revision_requested", FeedbackFields(revision_notes="Use the new palette")
    )
    assert outcome.new_status == ParentStatus.REVISION_REQUESTED
    assert outcome.revision_count == 1
    assert (outcome.item_progress.completed, outcome.item_progress.total) == (0, 2)
    assert outcome.item_progress.revision_labels == ["Post 1"]

    # Post 1, second attempt: approved
    v2, second_link = await deliver_and_link(db, parent.id, "Post 1", "uploads/post-v2.png")
    assert v2.version_number == 2
    assert (await resolve_review_link(db, first_link.token)).reason == "inactive"

    outcome = await submit_feedback(db, second_link.token, "approved")
    assert outcome.new_status == ParentStatus.IN_REVIEW_CLIENT
    assert (outcome.item_progress.completed, outcome.item_progress.total) == (1, 2)

    status = await get_status(db, parent.id)
    assert status.status == ParentStatus.IN_REVIEW_CLIENT
    assert status.item_progress.pending_labels == ["Miniature 1"]

    # Miniature 1 completes the bundle
    v3, third_link = await deliver_and_link(db, parent.id, "Miniature 1", "uploads/mini-v1.png")
    assert v3.version_number == 3

    outcome = await submit_feedback(db, third_link.token, "approved")
    assert outcome.new_status == ParentStatus.COMPLETED
    assert outcome.item_progress.is_complete
    assert outcome.revision_count == 1

    status = await get_status(db, parent.id)
    assert status.status == ParentStatus.COMPLETED
    assert status.revision_count == 1
    assert (status.item_progress.completed, status.item_progress.total) == (2, 2)


@pytest.mark.asyncio
async def test_items_can_be_reviewed_in_parallel(db: AsyncSession):
    parent = await create_parent(db, "[1x Post + 1x Miniature]", ParentKind.BUNDLED)

    _, post_link = await deliver_and_link(db, parent.id, "Post 1", "uploads/post.png")
    _, mini_link = await deliver_and_link(db, parent.id, "Miniature 1", "uploads/mini.png")

    # Both links stay usable; one per delivery
    assert (await submit_feedback(db, mini_link.token, "approved")).new_status == ParentStatus.IN_REVIEW_CLIENT
    assert (await submit_feedback(db, post_link.token, "approved")).new_status == ParentStatus.COMPLETED


@pytest.mark.asyncio
async def test_bundled_parent_needs_parsable_descriptor(db: AsyncSession):
    with pytest.raises(ValidationError):
        await create_parent(db, "3x Banner", ParentKind.BUNDLED)

    single = await create_parent(db, "motion teaser for launch", ParentKind.SINGLE)
    assert single.expected_labels == []


@pytest.mark.asyncio
async def test_restarting_one_item_keeps_other_items_reviewable(db: AsyncSession):
    parent = await create_parent(db, "1x Post + 1x Miniature", ParentKind.BUNDLED)
    post, post_link = await deliver_and_link(db, parent.id, "Post 1", "uploads/post-v1.png")
    _, mini_link = await deliver_and_link(db, parent.id, "Miniature 1", "uploads/mini-v1.png")

    await submit_feedback(db, post_link.token, "revision_requested", FeedbackFields(revision_notes="Crop tighter"))
    parent = await start_parent(db, parent.id)
    assert parent.status == ParentStatus.ACTIVE

    # Miniature link was issued before the restart and is still valid
    outcome = await submit_feedback(db, mini_link.token, "approved")
    assert outcome.new_status == ParentStatus.ACTIVE
    assert outcome.item_progress.approved_labels == ["Miniature 1"]

    # A link can still go out while the parent is active
    reissued = await issue_review_link(db, post.id)
    assert (await get_status(db, parent.id)).status == ParentStatus.IN_REVIEW_CLIENT

    outcome = await submit_feedback(db, reissued.token, "approved")
    assert outcome.new_status == ParentStatus.COMPLETED
    assert outcome.item_progress.is_complete
