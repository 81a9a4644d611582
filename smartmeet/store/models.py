"""Database models for meeting sessions and their satellites."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

from smartmeet.store.categories import (
    EMAIL_STATUSES,
    PARTICIPANT_ROLES,
    PLATFORMS,
    SESSION_STATUSES,
)
from smartmeet.utils.date_utils import utcnow

Base = declarative_base()


def _one_of(column: str, values) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class Meeting(Base):
    """Meeting session model."""
    __tablename__ = "meetings"
    __table_args__ = (
        CheckConstraint(_one_of("platform", PLATFORMS), name="ck_meetings_platform"),
        CheckConstraint(_one_of("status", SESSION_STATUSES), name="ck_meetings_status"),
        Index("idx_meetings_platform", "platform"),
        Index("idx_meetings_status", "status"),
        Index("idx_meetings_created_at", "created_at"),
    )

    id = Column(String, primary_key=True)
    platform = Column(String, nullable=False)
    meeting_link = Column(String, nullable=False)
    title = Column(String, nullable=True)
    status = Column(String, nullable=False, default="provisioning")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    summary_data = Column(Text, nullable=True)
    transcript_path = Column(String, nullable=True)
    recording_path = Column(String, nullable=True)
    oauth_token = Column(Text, nullable=True)
    meeting_metadata = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Meeting(id='{self.id}', platform='{self.platform}', status='{self.status}')>"


class Participant(Base):
    """Meeting participant model."""
    __tablename__ = "participants"
    __table_args__ = (
        CheckConstraint(_one_of("role", PARTICIPANT_ROLES), name="ck_participants_role"),
        Index("idx_participants_session_id", "session_id"),
        Index("idx_participants_email", "email"),
    )

    id = Column(String, primary_key=True)
    session_id = Column(String, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    role = Column(String, nullable=False, default="participant")
    joined_at = Column(DateTime, nullable=True)
    left_at = Column(DateTime, nullable=True)
    platform_user_id = Column(String, nullable=True)


class EmailLog(Base):
    """One summary email delivery record per recipient."""
    __tablename__ = "email_logs"
    __table_args__ = (
        CheckConstraint(_one_of("status", EMAIL_STATUSES), name="ck_email_logs_status"),
        Index("idx_email_logs_session_id", "session_id"),
        Index("idx_email_logs_status", "status"),
    )

    id = Column(String, primary_key=True)
    session_id = Column(String, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False)
    recipient_email = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending")
    sent_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)
    retry_count = Column(Integer, nullable=False, default=0)


class ChatLog(Base):
    """Assistant chat exchange. Survives deletion of its session."""
    __tablename__ = "chat_logs"
    __table_args__ = (
        Index("idx_chat_logs_session_id", "session_id"),
    )

    id = Column(String, primary_key=True)
    session_id = Column(String, ForeignKey("meetings.id", ondelete="SET NULL"), nullable=True)
    prompt = Column(Text, nullable=False)
    response = Column(Text, nullable=False)
    platform = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class OAuthToken(Base):
    """Platform OAuth credentials, one row per (platform, user_email)."""
    __tablename__ = "oauth_tokens"
    __table_args__ = (
        UniqueConstraint("platform", "user_email", name="uq_oauth_tokens_platform_user"),
        Index("idx_oauth_tokens_platform", "platform"),
    )

    id = Column(String, primary_key=True)
    platform = Column(String, nullable=False)
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    scope = Column(String, nullable=True)
    user_email = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<OAuthToken(platform='{self.platform}', user_email='{self.user_email}')>"


class SystemSetting(Base):
    """Free-form key/value setting; value is JSON text."""
    __tablename__ = "system_settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
