"""
Export Router
=============
GET /api/v1/trips/{id}/download   – printable PDF itinerary
GET /api/v1/trips/{id}/map        – interactive HTML route map
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_trip_for_user
from ..models import Note, Trip
from ..services.rich_text import to_plain_text
from ..tools.itinerary_exporter import ItineraryExporter, pdf_filename
from .itinerary import load_itinerary

logger = logging.getLogger(__name__)

router = APIRouter()


def _trip_dict(trip: Trip) -> dict:
    return {
        "name":       trip.name,
        "start_date": trip.start_date,
        "end_date":   trip.end_date,
        "trip_days":  trip.trip_days,
    }


@router.get("/trips/{trip_id}/download")
async def download_itinerary_pdf(
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    itinerary = load_itinerary(db, trip).model_dump()
    note = (
        db.query(Note)
        .filter(Note.trip_id == trip.id, Note.place_id.is_(None))
        .order_by(Note.updated_at.desc())
        .first()
    )
    trip_notes = to_plain_text(note.content) if note else ""

    try:
        pdf = ItineraryExporter().generate_pdf(_trip_dict(trip), itinerary, trip_notes)
    except Exception:
        logger.exception("PDF generation failed for trip %s", trip.id)
        raise HTTPException(status_code=500, detail="Failed to generate PDF")

    logger.info("Trip %s: exported PDF (%d bytes)", trip.id, len(pdf))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(trip.name)}"'},
    )


@router.get("/trips/{trip_id}/map", response_class=HTMLResponse)
async def route_map(
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    itinerary = load_itinerary(db, trip).model_dump()
    return HTMLResponse(ItineraryExporter().generate_route_map(_trip_dict(trip), itinerary))
