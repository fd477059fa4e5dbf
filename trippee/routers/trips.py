"""
Trips Router
============
POST   /api/v1/trips                  – create a trip (creator becomes owner)
GET    /api/v1/trips                  – trips the caller owns or belongs to
GET    /api/v1/trips/{id}             – trip details
PATCH  /api/v1/trips/{id}             – rename / change dates
DELETE /api/v1/trips/{id}             – delete (owner only)
GET    /api/v1/trips/{id}/members     – members with profile info
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..deps import get_current_user_id, get_membership, get_trip_for_user, is_owner
from ..models import MemberRole, Place, Profile, Trip, TripMember
from ..schemas import MemberSchema, TripCreate, TripSchema, TripUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def days_between(start: Optional[date], end: Optional[date]) -> Optional[int]:
    """
    Inclusive day count for a date range, or None when either end is open.
    Raises 400 when the range is reversed or outside the allowed trip length.
    """
    if not (start and end):
        return None
    if end < start:
        raise HTTPException(status_code=400, detail="End date must be after or equal to start date.")
    days = (end - start).days + 1
    if days > settings.max_trip_days:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Trip duration must be between 1 and {settings.max_trip_days} days. "
                f"Your trip is {days} days."
            ),
        )
    return days


@router.post("/trips", response_model=TripSchema, status_code=201)
async def create_trip(
    body: TripCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    trip = Trip(
        name        = body.name,
        created_by  = user_id,
        trip_days   = days_between(body.start_date, body.end_date) or body.trip_days,
        start_date  = body.start_date,
        end_date    = body.end_date,
    )
    db.add(trip)
    db.flush()

    db.add(TripMember(trip_id=trip.id, user_id=user_id, role=MemberRole.OWNER.value))
    db.commit()
    db.refresh(trip)

    logger.info("Trip %s created by %s (%d days)", trip.id, user_id, trip.trip_days)
    return trip


@router.get("/trips", response_model=List[TripSchema])
async def list_trips(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    member_trip_ids = select(TripMember.trip_id).where(TripMember.user_id == user_id)
    return (
        db.query(Trip)
        .filter(or_(Trip.created_by == user_id, Trip.id.in_(member_trip_ids)))
        .order_by(Trip.created_at.desc())
        .all()
    )


@router.get("/trips/{trip_id}", response_model=TripSchema)
async def get_trip(trip: Trip = Depends(get_trip_for_user)):
    return trip


@router.patch("/trips/{trip_id}", response_model=TripSchema)
async def update_trip(
    body: TripUpdate,
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    """
    Update the trip's name or dates.

    Setting both dates recomputes ``trip_days``; places left on days that no
    longer exist are moved back to unassigned.
    """
    updates = body.model_dump(exclude_unset=True)

    if "name" in updates:
        name = (updates["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Trip name is required.")
        trip.name = name

    start = updates.get("start_date", trip.start_date)
    end = updates.get("end_date", trip.end_date)
    days = days_between(start, end)
    trip.start_date, trip.end_date = start, end
    if days is not None:
        trip.trip_days = days
    elif updates.get("trip_days"):
        trip.trip_days = updates["trip_days"]

    dropped = (
        db.query(Place)
        .filter(Place.trip_id == trip.id, Place.day_assigned > trip.trip_days)
        .all()
    )
    for place in dropped:
        place.day_assigned = None
        place.order_index = None

    db.commit()
    db.refresh(trip)
    if dropped:
        logger.info("Trip %s shortened to %d days; unassigned %d places",
                    trip.id, trip.trip_days, len(dropped))
    return trip


@router.delete("/trips/{trip_id}", status_code=204)
async def delete_trip(
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    if not is_owner(trip, user_id, get_membership(db, trip.id, user_id)):
        raise HTTPException(status_code=403, detail="Only the trip owner can delete it")
    trip_id = trip.id
    db.delete(trip)
    db.commit()
    logger.info("Trip %s deleted by %s", trip_id, user_id)
    return Response(status_code=204)


@router.get("/trips/{trip_id}/members", response_model=List[MemberSchema])
async def list_members(
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    rows = (
        db.query(TripMember, Profile)
        .outerjoin(Profile, Profile.id == TripMember.user_id)
        .filter(TripMember.trip_id == trip.id)
        .order_by(TripMember.joined_at)
        .all()
    )
    return [
        MemberSchema(
            user_id   = member.user_id,
            role      = member.role,
            joined_at = member.joined_at,
            full_name = profile.full_name if profile else None,
            email     = profile.email if profile else None,
        )
        for member, profile in rows
    ]
