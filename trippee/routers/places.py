"""
Places Router
=============
GET    /api/v1/trips/{id}/places                 – list places on the trip
POST   /api/v1/trips/{id}/places                 – add a place
PATCH  /api/v1/trips/{id}/places/{pid}           – edit a place
DELETE /api/v1/trips/{id}/places/{pid}           – remove a place
POST   /api/v1/trips/{id}/places/{pid}/move      – move to a day / position
GET    /api/v1/trips/{id}/places/nearby          – places within a radius
GET    /api/v1/places/search?q=                  – search (Mapbox)
GET    /api/v1/places/details?placeId=           – place details (Google)
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_current_user_id, get_trip_for_user
from ..models import Place, Trip
from ..schemas import (
    PlaceCreate,
    PlaceMove,
    PlaceSchema,
    PlaceSearchResponse,
    PlaceUpdate,
)
from ..services import geo
from ..tools.places_client import PlacesAPIError, PlacesClient

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_place(db: Session, trip: Trip, place_id: str) -> Place:
    place = db.query(Place).filter(Place.id == place_id, Place.trip_id == trip.id).first()
    if not place:
        raise HTTPException(status_code=404, detail="Place not found")
    return place


def _day_places(db: Session, trip_id: str, day: int) -> List[Place]:
    return (
        db.query(Place)
        .filter(Place.trip_id == trip_id, Place.day_assigned == day)
        .order_by(Place.order_index, Place.created_at)
        .all()
    )


# ── Trip places ───────────────────────────────────────────────────────────────

@router.get("/trips/{trip_id}/places", response_model=List[PlaceSchema])
async def list_places(
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    return (
        db.query(Place)
        .filter(Place.trip_id == trip.id)
        .order_by(Place.created_at)
        .all()
    )


@router.post("/trips/{trip_id}/places", response_model=PlaceSchema, status_code=201)
async def create_place(
    body: PlaceCreate,
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    place = Place(trip_id=trip.id, created_by=user_id, **body.model_dump())
    db.add(place)
    db.commit()
    db.refresh(place)
    return place


@router.get("/trips/{trip_id}/places/nearby", response_model=List[PlaceSchema])
async def nearby_places(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(1.0, gt=0),
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    """Places on the trip within ``radius_km`` of a point."""
    places = db.query(Place).filter(Place.trip_id == trip.id).order_by(Place.created_at).all()
    points = [{"lat": p.lat, "lng": p.lng, "place": p} for p in places]
    hits = geo.places_within_radius({"lat": lat, "lng": lng}, points, radius_km)
    return [h["place"] for h in hits]


@router.patch("/trips/{trip_id}/places/{place_id}", response_model=PlaceSchema)
async def update_place(
    place_id: str,
    body: PlaceUpdate,
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    place = _get_place(db, trip, place_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if field in ("name", "lat", "lng") and value is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")
        setattr(place, field, value)
    db.commit()
    db.refresh(place)
    return place


@router.delete("/trips/{trip_id}/places/{place_id}", status_code=204)
async def delete_place(
    place_id: str,
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    place = _get_place(db, trip, place_id)
    day = place.day_assigned
    db.delete(place)
    db.flush()

    if day is not None:
        for idx, p in enumerate(_day_places(db, trip.id, day)):
            p.order_index = idx
    db.commit()
    return Response(status_code=204)


@router.post("/trips/{trip_id}/places/{place_id}/move", response_model=List[PlaceSchema])
async def move_place(
    place_id: str,
    body: PlaceMove,
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    """
    Move a place to ``day_assigned`` (or back to unassigned) at position
    ``order_index``. Both the source and target day are renumbered 0..n-1.

    Returns the places of the target day (or the unassigned list) in order.
    """
    if body.day_assigned is not None and body.day_assigned > trip.trip_days:
        raise HTTPException(
            status_code=400,
            detail=f"Day must be between 1 and {trip.trip_days}",
        )

    place = _get_place(db, trip, place_id)
    source_day = place.day_assigned

    if source_day is not None and source_day != body.day_assigned:
        remaining = [p for p in _day_places(db, trip.id, source_day) if p.id != place.id]
        for idx, p in enumerate(remaining):
            p.order_index = idx

    if body.day_assigned is None:
        place.day_assigned = None
        place.order_index = None
        db.commit()
        return (
            db.query(Place)
            .filter(Place.trip_id == trip.id, Place.day_assigned.is_(None))
            .order_by(Place.created_at)
            .all()
        )

    target = [p for p in _day_places(db, trip.id, body.day_assigned) if p.id != place.id]
    target.insert(min(body.order_index, len(target)), place)
    place.day_assigned = body.day_assigned
    for idx, p in enumerate(target):
        p.order_index = idx

    db.commit()
    return _day_places(db, trip.id, body.day_assigned)


# ── Third-party lookups ───────────────────────────────────────────────────────

@router.get("/places/search", response_model=PlaceSearchResponse)
async def search_places(
    q: str = Query("", description="Free-text query, e.g. 'cafes in Shibuya'"),
    limit: int = Query(10, ge=1, le=10),
):
    try:
        results = PlacesClient().search(q, limit=limit)
    except PlacesAPIError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc))
    return PlaceSearchResponse(results=results)


@router.get("/places/details")
async def place_details(place_id: str = Query(..., alias="placeId", min_length=1)):
    try:
        return PlacesClient().details(place_id)
    except PlacesAPIError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc))
