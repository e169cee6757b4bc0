"""Review invite endpoints.

Coaches issue and list invites; the invited party reads and declines them.
Answering an invite is ``POST /reviews`` (see ``routers/reviews.py``).
"""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user, require_coach
from libs.auth.models import AuthUser
from libs.common.emails.client import get_email_client
from libs.db.session import get_async_db
from services.reviews_service.schemas import InviteCreateRequest, InviteResponse
from services.reviews_service.services import invites as invite_service
from services.reviews_service.services.profiles import get_coach_profile
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/reviews/invites", tags=["review-invites"])


@router.post("", response_model=InviteResponse, status_code=status.HTTP_201_CREATED)
async def create_invite(
    payload: InviteCreateRequest,
    current_user: AuthUser = Depends(require_coach),
    db: AsyncSession = Depends(get_async_db),
):
    """Ask an ensemble (registered or not) for a review."""
    invite = await invite_service.create_invite(
        db,
        coach_profile_id=current_user.coach_profile_id,
        email=payload.email,
        display_name=payload.display_name,
        ensemble_profile_id=payload.ensemble_profile_id,
    )
    coach = await get_coach_profile(db, current_user.coach_profile_id)

    email_client = get_email_client()
    await email_client.send_template(
        template_type="review_invite",
        to_email=invite.ensemble_email,
        template_data={
            "coach_name": coach.display_name,
            "ensemble_name": invite.ensemble_name,
            "invite_id": str(invite.id),
            "expires_at": invite.expires_at.isoformat(),
        },
    )
    return invite


@router.get("", response_model=list[InviteResponse])
async def list_invites(
    current_user: AuthUser = Depends(require_coach),
    db: AsyncSession = Depends(get_async_db),
):
    """Invites the calling coach has issued, newest first."""
    return await invite_service.list_invites(
        db, coach_profile_id=current_user.coach_profile_id
    )


@router.get("/pending", response_model=list[InviteResponse])
async def list_invites_for_me(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Open invites addressed to the caller's email."""
    if not current_user.email:
        return []
    return await invite_service.list_pending_invites_for_email(
        db, email=current_user.email
    )


@router.get("/{invite_id}", response_model=InviteResponse)
async def get_invite(
    invite_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await invite_service.get_invite_for_recipient(
        db, invite_id=invite_id, email=current_user.email
    )


@router.post("/{invite_id}/decline", response_model=InviteResponse)
async def decline_invite(
    invite_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await invite_service.decline_invite(
        db, invite_id=invite_id, email=current_user.email
    )
