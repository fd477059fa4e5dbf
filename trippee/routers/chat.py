"""
Chat Router
===========
GET  /api/v1/trips/{id}/messages   – trip group chat, oldest first
POST /api/v1/trips/{id}/messages   – post a message

Messages starting with the assistant trigger ("Hey Trippee …") are flagged
so the assistant integration can pick them up; it is not called from here.
"""
import logging
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_current_user_id, get_trip_for_user
from ..models import Trip, TripMessage
from ..schemas import MessageCreate, MessagePostResponse, MessageSchema

logger = logging.getLogger(__name__)

router = APIRouter()

AI_TRIGGER = "hey trippee"


def parse_ai_request(content: str) -> Tuple[bool, Optional[str]]:
    """
    Detect the assistant trigger at the start of a message.

    Returns ``(requested, prompt)`` where ``prompt`` is the message with the
    trigger stripped, or ``"Hello"`` when nothing follows it.
    """
    text = content.strip()
    if not text.lower().startswith(AI_TRIGGER):
        return False, None
    prompt = text[len(AI_TRIGGER):].lstrip(" ,:!").strip()
    return True, prompt or "Hello"


@router.get("/trips/{trip_id}/messages", response_model=List[MessageSchema])
async def list_messages(
    limit: int = Query(100, ge=1, le=500),
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
):
    latest = (
        db.query(TripMessage)
        .filter(TripMessage.trip_id == trip.id)
        .order_by(TripMessage.created_at.desc())
        .limit(limit)
        .all()
    )
    return list(reversed(latest))


@router.post("/trips/{trip_id}/messages", response_model=MessagePostResponse, status_code=201)
async def post_message(
    body: MessageCreate,
    trip: Trip = Depends(get_trip_for_user),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    content = body.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Message cannot be empty")

    message = TripMessage(trip_id=trip.id, user_id=user_id, content=content, is_ai=False)
    db.add(message)
    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to save message for trip %s", trip.id)
        raise HTTPException(status_code=500, detail="Failed to save message")
    db.refresh(message)

    requested, prompt = parse_ai_request(content)
    if requested:
        logger.info("Assistant requested in trip %s by %s", trip.id, user_id)

    return MessagePostResponse(
        message      = MessageSchema.model_validate(message),
        ai_requested = requested,
        ai_prompt    = prompt,
    )
