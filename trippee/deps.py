"""
Request dependencies shared by the routers.

Authentication happens upstream; the gateway forwards the verified user
id in the ``X-User-Id`` header.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .database import get_db
from .models import MemberRole, Trip, TripMember


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id.strip()


def get_membership(db: Session, trip_id: str, user_id: str) -> Optional[TripMember]:
    return (
        db.query(TripMember)
        .filter(TripMember.trip_id == trip_id, TripMember.user_id == user_id)
        .first()
    )


def is_owner(trip: Trip, user_id: str, membership: Optional[TripMember] = None) -> bool:
    if trip.created_by == user_id:
        return True
    return membership is not None and membership.role == MemberRole.OWNER.value


def get_trip_for_user(
    trip_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> Trip:
    """Load a trip the caller created or belongs to; 404 / 403 otherwise."""
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    if trip.created_by != user_id and not get_membership(db, trip_id, user_id):
        raise HTTPException(status_code=403, detail="Forbidden")
    return trip
