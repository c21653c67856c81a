"""Tests for lateness detection and display status."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.core.deadlines import is_late, is_past_deadline, seconds_remaining
from reviewflow.models.parent import ParentKind, ParentStatus
from reviewflow.services.parent_service import create_parent, get_status, start_parent


START = datetime(2026, 3, 2, 9, 0, 0)


def test_seconds_remaining_goes_negative_when_late():
    allowance = timedelta(minutes=300)

    assert seconds_remaining(START, allowance, START + timedelta(minutes=290)) == 600
    assert seconds_remaining(START, allowance, START + timedelta(minutes=310)) == -600


def test_unstarted_work_is_never_late():
    assert not is_late(None, timedelta(minutes=1), START + timedelta(days=30))


def test_is_late_at_boundary():
    allowance = timedelta(minutes=60)

    assert not is_late(START, allowance, START + allowance)
    assert is_late(START, allowance, START + allowance + timedelta(seconds=1))


def test_past_deadline():
    assert not is_past_deadline(None, START)
    assert is_past_deadline(START, START + timedelta(seconds=1))
    assert not is_past_deadline(START, START)


@pytest.mark.asyncio
async def test_active_parent_past_allowance_displays_late(db: AsyncSession):
    parent = await create_parent(db, "1x Post", ParentKind.SINGLE, allowed_duration_minutes=60)
    parent = await start_parent(db, parent.id)
    started_at = parent.started_at

    on_time = await get_status(db, parent.id, now=started_at + timedelta(minutes=30))
    assert on_time.display_status == "active"
    assert not on_time.is_late
    assert on_time.seconds_remaining == 1800

    late = await get_status(db, parent.id, now=started_at + timedelta(minutes=61))
    assert late.display_status == "late"
    assert late.is_late
    assert late.status == ParentStatus.ACTIVE
    assert late.seconds_remaining == -60


@pytest.mark.asyncio
async def test_explicit_deadline_marks_active_parent_late(db: AsyncSession):
    deadline = datetime.utcnow() + timedelta(hours=1)
    parent = await create_parent(db, "1x Post", ParentKind.SINGLE, deadline=deadline)
    await start_parent(db, parent.id)

    view = await get_status(db, parent.id, now=deadline + timedelta(minutes=1))

    assert view.display_status == "late"


@pytest.mark.asyncio
async def test_only_active_parents_are_reclassified(db: AsyncSession):
    parent = await create_parent(db, "1x Post", ParentKind.SINGLE, allowed_duration_minutes=1)

    view = await get_status(db, parent.id, now=datetime.utcnow() + timedelta(days=1))

    assert view.display_status == "new"
    assert view.seconds_remaining is None
