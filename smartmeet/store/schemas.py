"""Pydantic schemas for the session store boundary."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from smartmeet.utils.date_utils import utcnow


class SessionCreate(BaseModel):
    """Schema for creating a meeting session."""
    id: str
    platform: str
    meeting_link: str
    title: Optional[str] = None
    status: str = "provisioning"
    oauth_token: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=utcnow)


class SessionUpdate(BaseModel):
    """
    Schema for updating a meeting session.

    Only fields explicitly set are written; an explicit None clears the column.
    """
    status: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    summary: Optional[Dict[str, Any]] = None
    transcript_path: Optional[str] = None
    recording_path: Optional[str] = None


class MeetingSession(BaseModel):
    """A meeting session with structured fields decoded."""
    id: str
    platform: str
    meeting_link: str
    title: Optional[str] = None
    status: str
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    summary: Optional[Dict[str, Any]] = None
    transcript_path: Optional[str] = None
    recording_path: Optional[str] = None
    oauth_token: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ParticipantCreate(BaseModel):
    """Schema for adding a participant. Role and joined_at are defaulted by the store."""
    name: str
    email: str
    role: Optional[str] = None
    joined_at: Optional[datetime] = None
    left_at: Optional[datetime] = None
    platform_user_id: Optional[str] = None


class ParticipantUpdate(BaseModel):
    """Schema for updating a participant."""
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    left_at: Optional[datetime] = None


class Participant(BaseModel):
    """Stored participant."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    name: str
    email: str
    role: str
    joined_at: Optional[datetime] = None
    left_at: Optional[datetime] = None
    platform_user_id: Optional[str] = None


class EmailLog(BaseModel):
    """Stored email delivery record."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    recipient_email: str
    status: str
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None
    retry_count: int = 0


class ChatLogCreate(BaseModel):
    """Schema for appending a chat exchange."""
    id: Optional[str] = None
    session_id: Optional[str] = None
    prompt: str
    response: str
    platform: str
    created_at: Optional[datetime] = None


class ChatLog(BaseModel):
    """Stored chat exchange."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: Optional[str] = None
    prompt: str
    response: str
    platform: str
    created_at: datetime


class OAuthTokenData(BaseModel):
    """Token material returned by a platform's token endpoint."""
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    scope: Optional[str] = None


class OAuthToken(BaseModel):
    """Stored OAuth credentials."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    platform: str
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    scope: Optional[str] = None
    user_email: str
    created_at: datetime
    updated_at: datetime


class PlatformCount(BaseModel):
    platform: str
    count: int


class DailyCount(BaseModel):
    day: date
    count: int


class MeetingStats(BaseModel):
    """Point-in-time dashboard counters."""
    total_meetings: int = 0
    completed_meetings: int = 0
    active_sessions: int = 0
    completion_rate: int = 0
    platform_stats: List[PlatformCount] = Field(default_factory=list)
    recent_activity: List[DailyCount] = Field(default_factory=list)
