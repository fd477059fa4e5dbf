import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey,
    Integer, JSON, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid.uuid4())


class MemberRole(str, enum.Enum):
    OWNER = "owner"
    MEMBER = "member"


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)          # user id issued by the auth provider
    full_name = Column(String(200), nullable=True)
    email = Column(String(320), nullable=True, index=True)
    avatar_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    created_by = Column(String(36), nullable=False, index=True)
    original_created_by = Column(String(36), nullable=True)
    trip_days = Column(Integer, nullable=False, default=3)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    members = relationship("TripMember", back_populates="trip", cascade="all, delete-orphan", passive_deletes=True)
    places = relationship("Place", back_populates="trip", cascade="all, delete-orphan", passive_deletes=True)
    messages = relationship("TripMessage", back_populates="trip", cascade="all, delete-orphan", passive_deletes=True)
    notes = relationship("Note", back_populates="trip", cascade="all, delete-orphan", passive_deletes=True)
    invitations = relationship("TripInvitation", back_populates="trip", cascade="all, delete-orphan", passive_deletes=True)


class TripMember(Base):
    __tablename__ = "trip_members"
    __table_args__ = (UniqueConstraint("trip_id", "user_id", name="uq_trip_member"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    trip_id = Column(String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=MemberRole.MEMBER.value)
    invited_by = Column(String(36), nullable=True)
    joined_at = Column(DateTime, default=utcnow)

    trip = relationship("Trip", back_populates="members")


class Place(Base):
    __tablename__ = "places"

    id = Column(String(36), primary_key=True, default=_new_id)
    trip_id = Column(String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(500), nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    category = Column(String(100), nullable=True)
    address = Column(String(1000), nullable=True)
    notes = Column(Text, nullable=True)
    place_id = Column(String(300), nullable=True)      # Google Places id

    # Itinerary
    day_assigned = Column(Integer, nullable=True)
    order_index = Column(Integer, nullable=True)

    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    trip = relationship("Trip", back_populates="places")


class TripMessage(Base):
    __tablename__ = "trip_messages"

    id = Column(String(36), primary_key=True, default=_new_id)
    trip_id = Column(String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=True)        # null for assistant messages
    content = Column(Text, nullable=False)
    is_ai = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    trip = relationship("Trip", back_populates="messages")


class Note(Base):
    __tablename__ = "notes"

    id = Column(String(36), primary_key=True, default=_new_id)
    trip_id = Column(String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    place_id = Column(String(36), ForeignKey("places.id", ondelete="CASCADE"), nullable=True)
    content = Column(JSON, default=dict)               # rich-text document
    last_edited_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    trip = relationship("Trip", back_populates="notes")


class TripInvitation(Base):
    __tablename__ = "trip_invitations"

    id = Column(String(36), primary_key=True, default=_new_id)
    trip_id = Column(String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    email = Column(String(320), nullable=False, index=True)
    token = Column(String(100), nullable=False, unique=True, index=True)
    invited_by = Column(String(36), nullable=False)
    status = Column(String(20), nullable=False, default=InvitationStatus.PENDING.value)
    created_at = Column(DateTime, default=utcnow)
    expires_at = Column(DateTime, nullable=False)

    trip = relationship("Trip", back_populates="invitations")
