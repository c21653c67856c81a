"""Tests for issuing and resolving review links."""

from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.core.errors import NotFoundError, StateTransitionError, ValidationError
from reviewflow.core.security import hash_review_token
from reviewflow.models.parent import ParentKind, ParentStatus
from reviewflow.models.review_link import ReviewLink
from reviewflow.services.delivery_service import DeliveryPayload, submit_delivery
from reviewflow.services.feedback_service import submit_feedback
from reviewflow.services.parent_service import cancel_parent, create_parent
from reviewflow.services.review_link_service import issue_review_link, resolve_review_link


async def delivered_parent(db: AsyncSession, descriptor="1x Post", kind=ParentKind.SINGLE, label=None):
    parent = await create_parent(db, descriptor, kind)
    delivery = await submit_delivery(db, parent.id, DeliveryPayload("uploads/v1.png"), item_label=label)
    return parent, delivery


@pytest.mark.asyncio
async def test_issue_link_sends_parent_to_client(db: AsyncSession):
    parent, delivery = await delivered_parent(db)

    issued = await issue_review_link(db, delivery.id)

    assert parent.status == ParentStatus.IN_REVIEW_CLIENT
    assert issued.link.is_active
    assert issued.link.delivery_id == delivery.id
    assert issued.expires_at - issued.link.created_at == timedelta(days=7)


@pytest.mark.asyncio
async def test_only_token_hash_is_stored(db: AsyncSession):
    _, delivery = await delivered_parent(db)

    issued = await issue_review_link(db, delivery.id)

    assert len(issued.token) >= 32
    assert issued.link.token_hash == hash_review_token(issued.token)
    assert issued.link.token_hash != issued.token


@pytest.mark.asyncio
async def test_resolve_valid_link_returns_context_and_counts_view(db: AsyncSession):
    parent, delivery = await delivered_parent(db)
    issued = await issue_review_link(db, delivery.id)

    first = await resolve_review_link(db, issued.token)
    second = await resolve_review_link(db, issued.token)

    assert first.valid
    assert first.reason is None
    assert first.delivery.id == delivery.id
    assert first.parent.id == parent.id
    assert [d.id for d in first.batch] == [delivery.id]
    assert second.link.views_count == 2
    assert second.link.last_viewed_at is not None


@pytest.mark.asyncio
async def test_resolve_unknown_token_never_raises(db: AsyncSession):
    resolution = await resolve_review_link(db, "not-a-real-token")

    assert not resolution.valid
    assert resolution.reason == "not_found"
    assert resolution.delivery is None


@pytest.mark.asyncio
async def test_resolve_expired_link(db: AsyncSession):
    _, delivery = await delivered_parent(db)
    issued = await issue_review_link(db, delivery.id, ttl=timedelta(minutes=5))

    before = await resolve_review_link(db, issued.token, now=issued.expires_at - timedelta(seconds=1))
    after = await resolve_review_link(db, issued.token, now=issued.expires_at + timedelta(seconds=1))

    assert before.valid
    assert not after.valid
    assert after.reason == "expired"
    # Views count even when the link can no longer be used
    assert after.link.views_count == 2


@pytest.mark.asyncio
async def test_resolve_after_feedback_is_inactive_even_when_expired(db: AsyncSession):
    _, delivery = await delivered_parent(db)
    issued = await issue_review_link(db, delivery.id, ttl=timedelta(minutes=5))
    await submit_feedback(db, issued.token, "approved")

    now_inactive = await resolve_review_link(db, issued.token)
    later = await resolve_review_link(db, issued.token, now=issued.expires_at + timedelta(days=1))

    assert now_inactive.reason == "inactive"
    assert later.reason == "inactive"


@pytest.mark.asyncio
async def test_reissue_supersedes_previous_link(db: AsyncSession):
    _, delivery = await delivered_parent(db)
    first = await issue_review_link(db, delivery.id)
    second = await issue_review_link(db, delivery.id)

    assert (await resolve_review_link(db, first.token)).reason == "inactive"
    assert (await resolve_review_link(db, second.token)).valid

    result = await db.execute(
        select(ReviewLink).where(ReviewLink.delivery_id == delivery.id, ReviewLink.is_active.is_(True))
    )
    assert [link.id for link in result.scalars().all()] == [second.link.id]


@pytest.mark.asyncio
async def test_cancel_revokes_active_links(db: AsyncSession):
    _, delivery = await delivered_parent(db)
    issued = await issue_review_link(db, delivery.id)

    parent = await cancel_parent(db, delivery.parent_id, reason="client dropped the brief")

    assert parent.status == ParentStatus.CANCELLED
    assert (await resolve_review_link(db, issued.token)).reason == "inactive"


@pytest.mark.asyncio
async def test_issue_link_errors(db: AsyncSession):
    with pytest.raises(NotFoundError):
        await issue_review_link(db, "missing")

    parent = await create_parent(db, "1x Post", ParentKind.SINGLE)
    delivery = await submit_delivery(db, parent.id, DeliveryPayload("uploads/v1.png"))
    with pytest.raises(ValidationError):
        await issue_review_link(db, delivery.id, ttl=timedelta(0))

    await cancel_parent(db, parent.id)
    with pytest.raises(StateTransitionError):
        await issue_review_link(db, delivery.id)
