"""
Itinerary Router
================
POST /api/v1/ai/generate-itinerary             – cluster + order arbitrary places
POST /api/v1/trips/{id}/itinerary/generate     – same, on the trip's places, and save it
GET  /api/v1/trips/{id}/itinerary              – the saved day-by-day itinerary
"""
import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..deps import get_trip_for_user
from ..models import Place, Trip
from ..schemas import (
    GenerateItineraryRequest,
    GenerateItineraryResponse,
    PlaceSchema,
    StoredDaySchema,
    TripItineraryResponse,
)
from ..services.route_optimizer import RouteOptimizer

logger = logging.getLogger(__name__)

router = APIRouter()


def load_itinerary(db: Session, trip: Trip) -> TripItineraryResponse:
    """Group the trip's stored places into days 1..trip_days plus unassigned."""
    places = (
        db.query(Place)
        .filter(Place.trip_id == trip.id)
        .order_by(Place.created_at)
        .all()
    )

    by_day = {day: [] for day in range(1, trip.trip_days + 1)}
    unassigned = []
    for place in places:
        if place.day_assigned in by_day:
            by_day[place.day_assigned].append(place)
        else:
            unassigned.append(place)

    days = []
    for day, day_places in by_day.items():
        day_places.sort(key=lambda p: p.order_index or 0)
        route = [{"lat": p.lat, "lng": p.lng} for p in day_places]
        days.append(StoredDaySchema(
            day           = day,
            calendar_date = trip.start_date + timedelta(days=day - 1) if trip.start_date else None,
            places        = [PlaceSchema.model_validate(p) for p in day_places],
            **RouteOptimizer.summarize_day(route),
        ))

    return TripItineraryResponse(
        trip_id    = trip.id,
        trip_days  = trip.trip_days,
        days       = days,
        unassigned = [PlaceSchema.model_validate(p) for p in unassigned],
    )


@router.post("/ai/generate-itinerary", response_model=GenerateItineraryResponse)
async def generate_itinerary(request: GenerateItineraryRequest):
    """
    Split the given places into ``tripDays`` geographic day clusters and
    order each day with a nearest-neighbour route.
    """
    places = [p.model_dump() for p in request.places]
    itinerary = RouteOptimizer(seed=settings.clustering_seed).build_itinerary(
        places, request.trip_days,
    )
    if not itinerary:
        raise HTTPException(status_code=500, detail="Failed to cluster places")
    return GenerateItineraryResponse(itinerary=itinerary)


@router.post("/trips/{trip_id}/itinerary/generate", response_model=GenerateItineraryResponse)
async def generate_trip_itinerary(
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    """Re-plan every place on the trip and persist the day assignments."""
    places = db.query(Place).filter(Place.trip_id == trip.id).order_by(Place.created_at).all()
    if not places:
        raise HTTPException(status_code=400, detail="Add some places before generating an itinerary")

    optimizer = RouteOptimizer(seed=settings.clustering_seed)
    itinerary = optimizer.build_itinerary(
        [{"id": p.id, "name": p.name, "lat": p.lat, "lng": p.lng} for p in places],
        trip.trip_days,
    )
    if not itinerary:
        raise HTTPException(status_code=500, detail="Failed to cluster places")

    try:
        assigned = optimizer.apply_itinerary(places, itinerary)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to save itinerary for trip %s", trip.id)
        raise HTTPException(status_code=500, detail="Failed to save itinerary")

    logger.info("Trip %s: assigned %d places across %d days", trip.id, assigned, len(itinerary))
    return GenerateItineraryResponse(itinerary=itinerary)


@router.get("/trips/{trip_id}/itinerary", response_model=TripItineraryResponse)
async def get_trip_itinerary(
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    return load_itinerary(db, trip)
