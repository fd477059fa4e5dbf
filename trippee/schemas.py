from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .config import settings


# ── Profiles & trips ──────────────────────────────────────────────────────────

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class ProfileSchema(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class TripCreate(BaseModel):
    name: str = Field(..., max_length=200, description="Trip name, e.g. 'Tokyo 2026'")
    trip_days: int = Field(3, ge=1, le=settings.max_trip_days, description="Number of itinerary days")
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Trip name is required.")
        return v


class TripUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    trip_days: Optional[int] = Field(None, ge=1, le=settings.max_trip_days)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TripSchema(BaseModel):
    id: str
    name: str
    created_by: str
    original_created_by: Optional[str] = None
    trip_days: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MemberSchema(BaseModel):
    user_id: str
    role: str
    joined_at: Optional[datetime] = None
    full_name: Optional[str] = None
    email: Optional[str] = None


# ── Places ────────────────────────────────────────────────────────────────────

class PlaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=500)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    category: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    place_id: Optional[str] = Field(None, description="Google Places id, if known")


class PlaceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    category: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    place_id: Optional[str] = None


class PlaceMove(BaseModel):
    day_assigned: Optional[int] = Field(None, ge=1, description="Target day, null to unassign")
    order_index: int = Field(0, ge=0)


class PlaceSchema(BaseModel):
    id: str
    trip_id: str
    name: str
    lat: float
    lng: float
    category: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    place_id: Optional[str] = None
    day_assigned: Optional[int] = None
    order_index: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlaceSearchResult(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    lat: float
    lng: float
    category: str = "other"


class PlaceSearchResponse(BaseModel):
    results: List[PlaceSearchResult] = []


# ── Itinerary ─────────────────────────────────────────────────────────────────

class ItineraryPlaceInput(BaseModel):
    id: Union[str, int]
    name: Optional[str] = None
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    category: Optional[str] = None


class GenerateItineraryRequest(BaseModel):
    places: List[ItineraryPlaceInput] = Field(..., min_length=1)
    trip_days: int = Field(..., alias="tripDays", ge=1, le=settings.max_trip_days)

    class Config:
        populate_by_name = True


class ItineraryStop(BaseModel):
    id: Union[str, int]
    order: int


class ItineraryDaySchema(BaseModel):
    day: int
    places: List[ItineraryStop] = []
    total_distance_km: float = 0.0
    estimated_travel_time_minutes: int = 0
    estimated_visit_time_minutes: int = 0


class GenerateItineraryResponse(BaseModel):
    itinerary: List[ItineraryDaySchema]


class StoredDaySchema(BaseModel):
    day: int
    calendar_date: Optional[date] = None
    places: List[PlaceSchema] = []
    total_distance_km: float = 0.0
    estimated_travel_time_minutes: int = 0
    estimated_visit_time_minutes: int = 0


class TripItineraryResponse(BaseModel):
    trip_id: str
    trip_days: int
    days: List[StoredDaySchema] = []
    unassigned: List[PlaceSchema] = []


# ── Chat ──────────────────────────────────────────────────────────────────────

class MessageCreate(BaseModel):
    content: str = Field(..., max_length=4000)


class MessageSchema(BaseModel):
    id: str
    trip_id: str
    user_id: Optional[str] = None
    content: str
    is_ai: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MessagePostResponse(BaseModel):
    message: MessageSchema
    ai_requested: bool = False
    ai_prompt: Optional[str] = None


# ── Notes ─────────────────────────────────────────────────────────────────────

class NoteUpsert(BaseModel):
    place_id: Optional[str] = None
    content: Dict[str, Any] = Field(default_factory=lambda: {"type": "doc", "content": []})


class NoteSchema(BaseModel):
    id: str
    trip_id: str
    place_id: Optional[str] = None
    content: Dict[str, Any] = {}
    last_edited_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ── Invitations ───────────────────────────────────────────────────────────────

class InviteCreate(BaseModel):
    email: str


class InvitationSchema(BaseModel):
    id: str
    trip_id: str
    email: str
    token: str
    status: str
    invited_by: str
    created_at: Optional[datetime] = None
    expires_at: datetime

    class Config:
        from_attributes = True


class RenderedEmail(BaseModel):
    subject: str
    html: str
    text: str


class InviteCreateResponse(BaseModel):
    invitation: InvitationSchema
    invite_link: str
    email: RenderedEmail


class InviteTripSummary(BaseModel):
    id: str
    name: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_by: str = ""


class PendingInviteSchema(BaseModel):
    id: str
    trip_id: str
    email: str
    status: str
    invited_by: str
    created_at: Optional[datetime] = None
    expires_at: datetime
    trip: InviteTripSummary
    inviter: Optional[ProfileSchema] = None


class InviteActionResponse(BaseModel):
    success: bool
    trip_id: str
    status: str
