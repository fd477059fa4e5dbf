"""
Notes Router
============
GET /api/v1/trips/{id}/notes?place_id=   – latest note for the trip or one place
PUT /api/v1/trips/{id}/notes             – create or replace that note
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_current_user_id, get_trip_for_user
from ..models import Note, Place, Trip
from ..schemas import NoteSchema, NoteUpsert

router = APIRouter()


def _latest_note(db: Session, trip_id: str, place_id: Optional[str]) -> Optional[Note]:
    query = db.query(Note).filter(Note.trip_id == trip_id)
    if place_id is None:
        query = query.filter(Note.place_id.is_(None))
    else:
        query = query.filter(Note.place_id == place_id)
    return query.order_by(Note.updated_at.desc()).first()


@router.get("/trips/{trip_id}/notes", response_model=NoteSchema)
async def get_note(
    place_id: Optional[str] = Query(None, description="Omit for the trip-wide note"),
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    note = _latest_note(db, trip.id, place_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.put("/trips/{trip_id}/notes", response_model=NoteSchema)
async def upsert_note(
    body: NoteUpsert,
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    if body.place_id is not None:
        exists = db.query(Place.id).filter(
            Place.id == body.place_id, Place.trip_id == trip.id,
        ).first()
        if not exists:
            raise HTTPException(status_code=404, detail="Place not found")

    note = _latest_note(db, trip.id, body.place_id)
    if not note:
        note = Note(trip_id=trip.id, place_id=body.place_id)
        db.add(note)

    note.content = body.content
    note.last_edited_by = user_id
    db.commit()
    db.refresh(note)
    return note
