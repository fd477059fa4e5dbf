"""
Profiles Router
===============
GET  /api/v1/profiles/me   – the caller's profile
PUT  /api/v1/profiles/me   – create or update the caller's profile
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_current_user_id
from ..models import Profile
from ..schemas import ProfileSchema, ProfileUpdate

router = APIRouter()


@router.get("/profiles/me", response_model=ProfileSchema)
async def get_my_profile(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.put("/profiles/me", response_model=ProfileSchema)
async def upsert_my_profile(
    body: ProfileUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Mirror the auth provider's user record so invitations can match by email."""
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if not profile:
        profile = Profile(id=user_id)
        db.add(profile)

    updates = body.model_dump(exclude_unset=True)
    if updates.get("email"):
        updates["email"] = updates["email"].strip().lower()
    for field, value in updates.items():
        setattr(profile, field, value)

    db.commit()
    db.refresh(profile)
    return profile
