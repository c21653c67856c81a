"""Public review API router used by external reviewers holding a token."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.database import get_db
from reviewflow.schemas.parent import ItemProgressResponse
from reviewflow.schemas.review import FeedbackCreate, FeedbackResult, ReviewResolution
from reviewflow.services.feedback_service import FeedbackFields, submit_feedback
from reviewflow.services.review_link_service import resolve_review_link

router = APIRouter()


@router.get("/{token}", response_model=ReviewResolution)
async def resolve_token(token: str, db: AsyncSession = Depends(get_db)):
    """
    Resolve a review token.

    Always 200: an unknown, expired or inactive token comes back with
    ``valid: false`` and a ``reason`` so the page can explain it.
    """
    return ReviewResolution.model_validate(await resolve_review_link(db, token))


@router.post("/{token}/feedback", response_model=FeedbackResult)
async def submit_feedback_endpoint(
    token: str,
    feedback_data: FeedbackCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Approve or request a revision through a review link.

    A link takes exactly one decision. Revision requests need notes or at
    least one attachment.
    """
    outcome = await submit_feedback(
        db,
        token,
        feedback_data.decision,
        FeedbackFields(
            rating=feedback_data.rating,
            feedback_text=feedback_data.feedback_text,
            revision_notes=feedback_data.revision_notes,
            attachments=feedback_data.attachments,
            reviewed_by=feedback_data.reviewed_by,
        ),
    )
    return FeedbackResult(
        feedback_id=outcome.feedback.id,
        decision=outcome.feedback.decision,
        new_status=outcome.new_status,
        revision_count=outcome.revision_count,
        item_progress=(
            ItemProgressResponse.model_validate(outcome.item_progress)
            if outcome.item_progress is not None else None
        ),
    )
