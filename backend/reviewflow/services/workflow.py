"""
State transition table for deliverable parents.

The table is fixed: every (status, event) pair that is not listed is an
illegal transition. Bundled parents extend the single-artifact table because
their items move through review independently.

Terminal statuses (completed, cancelled) have no outgoing transitions.
"""

from enum import Enum
from typing import Dict, FrozenSet, Tuple

from reviewflow.core.errors import StateTransitionError
from reviewflow.models.parent import ParentKind, ParentStatus


class WorkflowEvent(str, Enum):
    """Events that drive parent status."""
    START = "start"
    SUBMIT = "submit"
    SEND_TO_CLIENT = "send_to_client"
    ADMIN_REVISION = "admin_revision"
    CLIENT_APPROVE = "client_approve"
    CLIENT_APPROVE_PARTIAL = "client_approve_partial"
    CLIENT_REVISION = "client_revision"
    CANCEL = "cancel"


Transitions = Dict[Tuple[ParentStatus, WorkflowEvent], ParentStatus]

NON_TERMINAL_STATES: FrozenSet[ParentStatus] = frozenset(
    status for status in ParentStatus if not status.is_terminal
)

SINGLE_TRANSITIONS: Transitions = {
    (ParentStatus.NEW, WorkflowEvent.START): ParentStatus.ACTIVE,
    (ParentStatus.NEW, WorkflowEvent.SUBMIT): ParentStatus.IN_REVIEW_ADMIN,
    (ParentStatus.ACTIVE, WorkflowEvent.SUBMIT): ParentStatus.IN_REVIEW_ADMIN,
    (ParentStatus.REVISION_REQUESTED, WorkflowEvent.START): ParentStatus.ACTIVE,
    (ParentStatus.REVISION_REQUESTED, WorkflowEvent.SUBMIT): ParentStatus.IN_REVIEW_ADMIN,
    (ParentStatus.IN_REVIEW_ADMIN, WorkflowEvent.SEND_TO_CLIENT): ParentStatus.IN_REVIEW_CLIENT,
    (ParentStatus.IN_REVIEW_CLIENT, WorkflowEvent.SEND_TO_CLIENT): ParentStatus.IN_REVIEW_CLIENT,
    (ParentStatus.IN_REVIEW_ADMIN, WorkflowEvent.ADMIN_REVISION): ParentStatus.REVISION_REQUESTED,
    (ParentStatus.IN_REVIEW_CLIENT, WorkflowEvent.CLIENT_APPROVE): ParentStatus.COMPLETED,
    (ParentStatus.IN_REVIEW_CLIENT, WorkflowEvent.CLIENT_REVISION): ParentStatus.REVISION_REQUESTED,
    **{(status, WorkflowEvent.CANCEL): ParentStatus.CANCELLED for status in NON_TERMINAL_STATES},
}

BUNDLED_TRANSITIONS: Transitions = {
    **SINGLE_TRANSITIONS,
    (ParentStatus.IN_REVIEW_ADMIN, WorkflowEvent.SUBMIT): ParentStatus.IN_REVIEW_ADMIN,
    (ParentStatus.IN_REVIEW_CLIENT, WorkflowEvent.SUBMIT): ParentStatus.IN_REVIEW_CLIENT,
    (ParentStatus.REVISION_REQUESTED, WorkflowEvent.SEND_TO_CLIENT): ParentStatus.IN_REVIEW_CLIENT,
    (ParentStatus.IN_REVIEW_CLIENT, WorkflowEvent.CLIENT_APPROVE_PARTIAL): ParentStatus.IN_REVIEW_CLIENT,
    (ParentStatus.REVISION_REQUESTED, WorkflowEvent.CLIENT_APPROVE): ParentStatus.COMPLETED,
    (ParentStatus.REVISION_REQUESTED, WorkflowEvent.CLIENT_APPROVE_PARTIAL): ParentStatus.REVISION_REQUESTED,
    (ParentStatus.REVISION_REQUESTED, WorkflowEvent.CLIENT_REVISION): ParentStatus.REVISION_REQUESTED,
    (ParentStatus.IN_REVIEW_ADMIN, WorkflowEvent.CLIENT_APPROVE): ParentStatus.COMPLETED,
    (ParentStatus.IN_REVIEW_ADMIN, WorkflowEvent.CLIENT_APPROVE_PARTIAL): ParentStatus.IN_REVIEW_ADMIN,
    (ParentStatus.IN_REVIEW_ADMIN, WorkflowEvent.CLIENT_REVISION): ParentStatus.REVISION_REQUESTED,
    # Reworking one label must not block review of the others
    (ParentStatus.ACTIVE, WorkflowEvent.SEND_TO_CLIENT): ParentStatus.IN_REVIEW_CLIENT,
    (ParentStatus.ACTIVE, WorkflowEvent.CLIENT_APPROVE): ParentStatus.COMPLETED,
    (ParentStatus.ACTIVE, WorkflowEvent.CLIENT_APPROVE_PARTIAL): ParentStatus.ACTIVE,
    (ParentStatus.ACTIVE, WorkflowEvent.CLIENT_REVISION): ParentStatus.REVISION_REQUESTED,
}

TRANSITION_TABLES: Dict[ParentKind, Transitions] = {
    ParentKind.SINGLE: SINGLE_TRANSITIONS,
    ParentKind.BUNDLED: BUNDLED_TRANSITIONS,
}


def next_status(kind: ParentKind, status: ParentStatus, event: WorkflowEvent) -> ParentStatus:
    """
    Look up the status an event leads to.

    Args:
        kind: Parent kind selecting the transition table
        status: Current stored status
        event: Event being applied

    Returns:
        The resulting status

    Raises:
        StateTransitionError: If the table has no entry for (status, event)
    """
    try:
        return TRANSITION_TABLES[kind][(status, event)]
    except KeyError:
        raise StateTransitionError(
            f"Cannot apply '{event.value}' to {kind.value} parent with status '{status.value}'",
            current_state=status.value,
            event=event.value,
        ) from None
