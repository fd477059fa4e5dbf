"""
Invitations Router
==================
POST /api/v1/trips/{id}/invite               – invite a collaborator by email
GET  /api/v1/invites                         – caller's pending invitations
GET  /api/v1/invites/token/{token}           – look up an invite link
POST /api/v1/invites/token/{token}/accept    – accept via invite link
POST /api/v1/invites/{id}/accept             – accept from the dashboard
POST /api/v1/invites/{id}/decline            – decline from the dashboard
"""
import logging
import re
import secrets
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..deps import get_current_user_id, get_membership, get_trip_for_user
from ..models import InvitationStatus, MemberRole, Profile, Trip, TripInvitation, TripMember, utcnow
from ..schemas import (
    InvitationSchema,
    InviteActionResponse,
    InviteCreate,
    InviteCreateResponse,
    InviteTripSummary,
    PendingInviteSchema,
    ProfileSchema,
    RenderedEmail,
)
from ..tools.email_templates import render_invitation

logger = logging.getLogger(__name__)

router = APIRouter()

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _profile(db: Session, user_id: str) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.id == user_id).first()


def _is_expired(invitation: TripInvitation) -> bool:
    return invitation.expires_at is not None and invitation.expires_at < utcnow()


def _pending_view(db: Session, invitation: TripInvitation) -> PendingInviteSchema:
    trip = invitation.trip
    inviter = _profile(db, invitation.invited_by)
    return PendingInviteSchema(
        id         = invitation.id,
        trip_id    = invitation.trip_id,
        email      = invitation.email,
        status     = invitation.status,
        invited_by = invitation.invited_by,
        created_at = invitation.created_at,
        expires_at = invitation.expires_at,
        trip       = InviteTripSummary(
            id         = trip.id,
            name       = trip.name,
            start_date = trip.start_date,
            end_date   = trip.end_date,
            created_by = trip.created_by,
        ),
        inviter    = ProfileSchema.model_validate(inviter) if inviter else None,
    )


def _accept(db: Session, invitation: TripInvitation, user_id: str) -> InviteActionResponse:
    if _is_expired(invitation):
        raise HTTPException(status_code=410, detail="This invitation has expired")

    if not get_membership(db, invitation.trip_id, user_id):
        db.add(TripMember(
            trip_id    = invitation.trip_id,
            user_id    = user_id,
            role       = MemberRole.MEMBER.value,
            invited_by = invitation.invited_by,
        ))
    invitation.status = InvitationStatus.ACCEPTED.value
    db.commit()

    logger.info("User %s joined trip %s via invitation %s",
                user_id, invitation.trip_id, invitation.id)
    return InviteActionResponse(
        success=True, trip_id=invitation.trip_id, status=invitation.status,
    )


def _own_pending_invitation(db: Session, invite_id: str, user_id: str) -> TripInvitation:
    """A pending invitation addressed to the caller's profile email."""
    invitation = (
        db.query(TripInvitation)
        .filter(
            TripInvitation.id == invite_id,
            TripInvitation.status == InvitationStatus.PENDING.value,
        )
        .first()
    )
    if not invitation:
        raise HTTPException(status_code=404, detail="Invitation not found or already processed")

    profile = _profile(db, user_id)
    if not profile or not profile.email or profile.email.lower() != invitation.email:
        raise HTTPException(status_code=403, detail="This invitation is not for you")
    return invitation


@router.post("/trips/{trip_id}/invite", response_model=InviteCreateResponse, status_code=201)
async def create_invitation(
    body: InviteCreate,
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    email = body.email.strip().lower()
    if not EMAIL_RE.match(email):
        raise HTTPException(status_code=400, detail="Invalid email address")

    invitee = db.query(Profile).filter(Profile.email == email).first()
    if invitee and (invitee.id == trip.created_by or get_membership(db, trip.id, invitee.id)):
        raise HTTPException(status_code=400, detail="User is already a member of this trip")

    pending = (
        db.query(TripInvitation)
        .filter(
            TripInvitation.trip_id == trip.id,
            TripInvitation.email == email,
            TripInvitation.status == InvitationStatus.PENDING.value,
        )
        .all()
    )
    if any(not _is_expired(inv) for inv in pending):
        raise HTTPException(status_code=400, detail="Invitation already sent to this email")

    invitation = TripInvitation(
        trip_id    = trip.id,
        email      = email,
        token      = secrets.token_urlsafe(24),
        invited_by = user_id,
        status     = InvitationStatus.PENDING.value,
        expires_at = utcnow() + timedelta(days=settings.invite_expiry_days),
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)

    inviter = _profile(db, user_id)
    inviter_name = (inviter and (inviter.full_name or inviter.email)) or "A Trippee user"
    invite_link = f"{settings.app_url.rstrip('/')}/invite/{invitation.token}"

    logger.info("Trip %s: %s invited %s", trip.id, user_id, email)
    return InviteCreateResponse(
        invitation  = InvitationSchema.model_validate(invitation),
        invite_link = invite_link,
        email       = RenderedEmail(**render_invitation(trip.name, inviter_name, invite_link)),
    )


@router.get("/invites", response_model=List[PendingInviteSchema])
async def list_pending_invitations(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    profile = _profile(db, user_id)
    if not profile or not profile.email:
        return []

    invitations = (
        db.query(TripInvitation)
        .filter(
            TripInvitation.email == profile.email.lower(),
            TripInvitation.status == InvitationStatus.PENDING.value,
            TripInvitation.expires_at > utcnow(),
        )
        .order_by(TripInvitation.created_at.desc())
        .all()
    )
    return [_pending_view(db, inv) for inv in invitations]


@router.get("/invites/token/{token}", response_model=PendingInviteSchema)
async def get_invitation_by_token(token: str, db: Session = Depends(get_db)):
    invitation = (
        db.query(TripInvitation)
        .filter(
            TripInvitation.token == token,
            TripInvitation.status == InvitationStatus.PENDING.value,
        )
        .first()
    )
    if not invitation:
        raise HTTPException(status_code=404, detail="Invalid or expired invitation")
    if _is_expired(invitation):
        raise HTTPException(status_code=410, detail="This invitation has expired")
    return _pending_view(db, invitation)


@router.post("/invites/token/{token}/accept", response_model=InviteActionResponse)
async def accept_invitation_by_token(
    token: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Anyone holding the link may join; the token is the credential."""
    invitation = (
        db.query(TripInvitation)
        .filter(
            TripInvitation.token == token,
            TripInvitation.status == InvitationStatus.PENDING.value,
        )
        .first()
    )
    if not invitation:
        raise HTTPException(status_code=404, detail="Invalid or expired invitation")
    return _accept(db, invitation, user_id)


@router.post("/invites/{invite_id}/accept", response_model=InviteActionResponse)
async def accept_invitation(
    invite_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return _accept(db, _own_pending_invitation(db, invite_id, user_id), user_id)


@router.post("/invites/{invite_id}/decline", response_model=InviteActionResponse)
async def decline_invitation(
    invite_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    invitation = _own_pending_invitation(db, invite_id, user_id)
    invitation.status = InvitationStatus.DECLINED.value
    db.commit()
    return InviteActionResponse(
        success=True, trip_id=invitation.trip_id, status=invitation.status,
    )
