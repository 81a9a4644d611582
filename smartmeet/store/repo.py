"""Session store: durable record of meetings, participants, emails, chats, tokens and settings."""

import uuid
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Iterator, List, Optional

from pydantic import ValidationError
from sqlalchemy import desc, func, insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from smartmeet.store import models
from smartmeet.store.categories import (
    ACTIVE_SESSION_STATUSES,
    DEFAULT_PARTICIPANT_ROLE,
    RETRYABLE_EMAIL_STATUSES,
)
from smartmeet.store.encoding import decode_json, encode_json
from smartmeet.store.engine import create_session_factory, create_store_engine, create_tables
from smartmeet.store.errors import (
    ConstraintViolation,
    EncodingError,
    NotFound,
    StorageUnavailable,
    StoreError,
)
from smartmeet.store.schemas import (
    ChatLog,
    ChatLogCreate,
    DailyCount,
    EmailLog,
    MeetingSession,
    MeetingStats,
    OAuthToken,
    OAuthTokenData,
    Participant,
    ParticipantCreate,
    ParticipantUpdate,
    PlatformCount,
    SessionCreate,
    SessionUpdate,
)
from smartmeet.utils.date_utils import days_ago, parse_day, to_naive_utc, utcnow
from smartmeet.utils.logging_utils import StructuredLogger

logger = StructuredLogger("smartmeet.store")


def _degrades_to(default_factory: Callable[[], Any]):
    """Read operations hand back an empty result; the session scope already logged the failure."""
    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except StoreError:
                return default_factory()
        return wrapper
    return decorator


class SessionStore:
    """
    Repository over the embedded SQLite database.

    Construct, call initialize() (or use as a context manager), pass the
    instance to collaborators, and close() it on shutdown. Writes raise a
    StoreError subclass on failure; reads log and return an empty result.
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        busy_timeout_ms: int = 5000,
        stats_window_days: int = 30
    ):
        self.database_url = database_url
        self.echo = echo
        self.busy_timeout_ms = busy_timeout_ms
        self.stats_window_days = stats_window_days
        self._engine = None
        self._session_factory = None

    @classmethod
    def from_settings(cls, settings) -> "SessionStore":
        """Build a store from application settings."""
        return cls(
            settings.database_url,
            echo=settings.database_echo,
            busy_timeout_ms=settings.sqlite_busy_timeout_ms,
            stats_window_days=settings.stats_window_days
        )

    # Lifecycle
    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def initialize(self) -> "SessionStore":
        """Open the engine and create any missing tables. Safe to call on every startup."""
        if self._engine is not None:
            return self

        engine = create_store_engine(self.database_url, echo=self.echo, busy_timeout_ms=self.busy_timeout_ms)
        try:
            create_tables(engine)
        except SQLAlchemyError as e:
            engine.dispose()
            logger.error(
                "Database initialization failed",
                database_url=self.database_url,
                error=str(e),
                error_type=type(e).__name__
            )
            raise StorageUnavailable(f"Cannot initialize database: {e}", operation="initialize") from e

        self._engine = engine
        self._session_factory = create_session_factory(engine)
        logger.info("Database initialized successfully", database_url=self.database_url)
        return self

    def close(self) -> None:
        """Release every pooled connection; SQLite checkpoints the WAL when the last one closes."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database connection closed", database_url=self.database_url)

    def __enter__(self) -> "SessionStore":
        return self.initialize()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @contextmanager
    def _session_scope(self, operation: str) -> Iterator[Session]:
        """Unit of work: commit on success, roll back and translate errors on failure."""
        if self._session_factory is None:
            error = StorageUnavailable("Session store is not open", operation=operation)
            self._log_failure(operation, error)
            raise error

        db = self._session_factory()
        try:
            yield db
            db.commit()
        except StoreError as e:
            db.rollback()
            if e.operation is None:
                e.operation = operation
            self._log_failure(operation, e)
            raise
        except IntegrityError as e:
            db.rollback()
            self._log_failure(operation, e)
            raise ConstraintViolation(str(e.orig), operation=operation) from e
        except SQLAlchemyError as e:
            db.rollback()
            self._log_failure(operation, e)
            raise StorageUnavailable(str(e), operation=operation) from e
        finally:
            db.close()

    @staticmethod
    def _log_failure(operation: str, error: Exception) -> None:
        logger.error(
            f"Store operation failed: {operation}",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__
        )

    # Meeting session operations
    def create_session(self, session_data: SessionCreate) -> MeetingSession:
        """Insert a new session. Out-of-set platform/status or a duplicate id raise ConstraintViolation."""
        created_at = to_naive_utc(session_data.created_at)
        with self._session_scope("create_session") as db:
            meeting = models.Meeting(
                id=session_data.id,
                platform=session_data.platform,
                meeting_link=session_data.meeting_link,
                title=session_data.title,
                status=session_data.status,
                created_at=created_at,
                oauth_token=session_data.oauth_token,
                meeting_metadata=encode_json(session_data.metadata, "metadata")
            )
            db.add(meeting)

        logger.debug("Session created", session_id=session_data.id, platform=session_data.platform)
        return MeetingSession(**{**session_data.model_dump(), "created_at": created_at})

    @_degrades_to(lambda: None)
    def get_session(self, session_id: str) -> Optional[MeetingSession]:
        """Get a session by ID, or None."""
        with self._session_scope("get_session") as db:
            meeting = db.get(models.Meeting, session_id)
            if meeting is None:
                return None
            return self._to_session(meeting)

    def update_session(self, session_id: str, update_data: SessionUpdate) -> MeetingSession:
        """
        Apply a partial update to a session.

        Only the fields set on `update_data` are written; fields left unset keep
        their stored value. Passing an explicit None clears that column.

        Raises:
            NotFound: no session with `session_id`
            ConstraintViolation: status outside the allowed set
            EncodingError: summary is not JSON-serializable
        """
        changes = update_data.model_dump(exclude_unset=True)
        with self._session_scope("update_session") as db:
            meeting = db.get(models.Meeting, session_id)
            if meeting is None:
                raise NotFound("Session", session_id)

            for field, value in changes.items():
                if field == "summary":
                    meeting.summary_data = encode_json(value, "summary")
                elif field in ("started_at", "completed_at"):
                    setattr(meeting, field, to_naive_utc(value))
                else:
                    setattr(meeting, field, value)

            db.flush()
            updated = self._to_session(meeting)

        logger.debug("Session updated", session_id=session_id, fields=sorted(changes))
        return updated

    def delete_session(self, session_id: str) -> None:
        """Delete a session; participants and email logs cascade, chat logs are detached."""
        with self._session_scope("delete_session") as db:
            removed = db.query(models.Meeting).filter(
                models.Meeting.id == session_id
            ).delete(synchronize_session=False)
            if not removed:
                raise NotFound("Session", session_id)

        logger.info("Session deleted", session_id=session_id)

    def list_recent_sessions(self, limit: int = 10, offset: int = 0) -> List[MeetingSession]:
        """Sessions ordered newest first."""
        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must be non-negative")
        if limit == 0:
            return []
        return self._list_recent_sessions(limit, offset)

    @_degrades_to(list)
    def _list_recent_sessions(self, limit: int, offset: int) -> List[MeetingSession]:
        with self._session_scope("list_recent_sessions") as db:
            meetings = db.query(models.Meeting).order_by(
                desc(models.Meeting.created_at)
            ).limit(limit).offset(offset).all()
            return [self._to_session(m) for m in meetings]

    @_degrades_to(list)
    def list_sessions_by_status(self, status: str) -> List[MeetingSession]:
        """Sessions with the given status, newest first."""
        with self._session_scope("list_sessions_by_status") as db:
            meetings = db.query(models.Meeting).filter(
                models.Meeting.status == status
            ).order_by(desc(models.Meeting.created_at)).all()
            return [self._to_session(m) for m in meetings]

    @_degrades_to(list)
    def list_sessions_by_platform(self, platform: str) -> List[MeetingSession]:
        """Sessions on the given platform, newest first."""
        with self._session_scope("list_sessions_by_platform") as db:
            meetings = db.query(models.Meeting).filter(
                models.Meeting.platform == platform
            ).order_by(desc(models.Meeting.created_at)).all()
            return [self._to_session(m) for m in meetings]

    @_degrades_to(int)
    def count_active_sessions(self) -> int:
        """Number of sessions currently recording or processing."""
        with self._session_scope("count_active_sessions") as db:
            return db.query(func.count(models.Meeting.id)).filter(
                models.Meeting.status.in_(ACTIVE_SESSION_STATUSES)
            ).scalar() or 0

    @staticmethod
    def _to_session(meeting: models.Meeting) -> MeetingSession:
        try:
            return MeetingSession(
                id=meeting.id,
                platform=meeting.platform,
                meeting_link=meeting.meeting_link,
                title=meeting.title,
                status=meeting.status,
                created_at=meeting.created_at,
                started_at=meeting.started_at,
                completed_at=meeting.completed_at,
                summary=decode_json(meeting.summary_data, "summary"),
                transcript_path=meeting.transcript_path,
                recording_path=meeting.recording_path,
                oauth_token=meeting.oauth_token,
                metadata=decode_json(meeting.meeting_metadata, "metadata")
            )
        except ValidationError as e:
            # Valid JSON of the wrong shape, e.g. a list where an object is stored
            raise EncodingError(f"Stored session {meeting.id} does not match its schema: {e}") from e

    # Participant operations
    def replace_participants(self, session_id: str, participants: List[ParticipantCreate]) -> List[Participant]:
        """
        Replace a session's participant list in a single transaction.

        Either every new row is visible and the old ones are gone, or nothing
        changed.
        """
        with self._session_scope("replace_participants") as db:
            db.query(models.Participant).filter(
                models.Participant.session_id == session_id
            ).delete(synchronize_session=False)

            rows = [self._new_participant(session_id, p) for p in participants]
            db.add_all(rows)
            db.flush()
            replaced = [Participant.model_validate(r) for r in rows]

        logger.debug("Participants replaced", session_id=session_id, count=len(replaced))
        return replaced

    def add_participant(self, session_id: str, participant: ParticipantCreate) -> Participant:
        """Add one participant without touching the others."""
        with self._session_scope("add_participant") as db:
            row = self._new_participant(session_id, participant)
            db.add(row)
            db.flush()
            return Participant.model_validate(row)

    def update_participant(self, participant_id: str, update_data: ParticipantUpdate) -> Participant:
        """Update name, email, role or left_at of a participant."""
        changes = update_data.model_dump(exclude_unset=True)
        with self._session_scope("update_participant") as db:
            row = db.get(models.Participant, participant_id)
            if row is None:
                raise NotFound("Participant", participant_id)

            for field, value in changes.items():
                if field == "left_at":
                    value = to_naive_utc(value)
                setattr(row, field, value)

            db.flush()
            return Participant.model_validate(row)

    @_degrades_to(list)
    def list_participants(self, session_id: str) -> List[Participant]:
        """Participants of a session in insertion order."""
        with self._session_scope("list_participants") as db:
            rows = db.query(models.Participant).filter(
                models.Participant.session_id == session_id
            ).all()
            return [Participant.model_validate(r) for r in rows]

    @staticmethod
    def _new_participant(session_id: str, participant: ParticipantCreate) -> models.Participant:
        return models.Participant(
            id=str(uuid.uuid4()),
            session_id=session_id,
            name=participant.name,
            email=participant.email,
            role=participant.role or DEFAULT_PARTICIPANT_ROLE,
            joined_at=to_naive_utc(participant.joined_at) or utcnow(),
            left_at=to_naive_utc(participant.left_at),
            platform_user_id=participant.platform_user_id
        )

    # Email log operations
    def log_email_attempt(
        self,
        session_id: str,
        recipient_email: str,
        status: str = "pending",
        error_message: Optional[str] = None
    ) -> str:
        """Record a summary email for one recipient. Returns the log ID."""
        log_id = str(uuid.uuid4())
        with self._session_scope("log_email_attempt") as db:
            db.add(models.EmailLog(
                id=log_id,
                session_id=session_id,
                recipient_email=recipient_email,
                status=status,
                sent_at=utcnow() if status == "sent" else None,
                error_message=error_message,
                retry_count=0
            ))
        return log_id

    def update_email_status(
        self,
        log_id: str,
        status: str,
        error_message: Optional[str] = None,
        retry_count: int = 0
    ) -> EmailLog:
        """Record the outcome of a (re)delivery on the same log row."""
        with self._session_scope("update_email_status") as db:
            row = db.get(models.EmailLog, log_id)
            if row is None:
                raise NotFound("EmailLog", log_id)

            row.status = status
            row.sent_at = utcnow() if status == "sent" else None
            row.error_message = error_message
            row.retry_count = retry_count
            db.flush()
            return EmailLog.model_validate(row)

    @_degrades_to(list)
    def list_email_logs(self, session_id: str) -> List[EmailLog]:
        """All email attempts for a session."""
        with self._session_scope("list_email_logs") as db:
            rows = db.query(models.EmailLog).filter(models.EmailLog.session_id == session_id).all()
            return [EmailLog.model_validate(r) for r in rows]

    @_degrades_to(list)
    def list_pending_or_failed_emails(self) -> List[EmailLog]:
        """Email attempts still waiting for delivery, across every session."""
        with self._session_scope("list_pending_or_failed_emails") as db:
            rows = db.query(models.EmailLog).filter(
                models.EmailLog.status.in_(RETRYABLE_EMAIL_STATUSES)
            ).all()
            return [EmailLog.model_validate(r) for r in rows]

    # Chat operations
    def log_chat(self, entry: ChatLogCreate) -> str:
        """Append a chat exchange. Returns its ID."""
        chat_id = entry.id or str(uuid.uuid4())
        with self._session_scope("log_chat") as db:
            db.add(models.ChatLog(
                id=chat_id,
                session_id=entry.session_id,
                prompt=entry.prompt,
                response=entry.response,
                platform=entry.platform,
                created_at=to_naive_utc(entry.created_at) or utcnow()
            ))
        return chat_id

    def list_chat_history(self, session_id: Optional[str], limit: int = 50) -> List[ChatLog]:
        """Most recent chat exchanges for a session, newest first."""
        if limit < 0:
            raise ValueError("limit must be non-negative")
        if limit == 0:
            return []
        return self._list_chat_history(session_id, limit)

    @_degrades_to(list)
    def _list_chat_history(self, session_id: Optional[str], limit: int) -> List[ChatLog]:
        with self._session_scope("list_chat_history") as db:
            rows = db.query(models.ChatLog).filter(
                models.ChatLog.session_id == session_id
            ).order_by(desc(models.ChatLog.created_at)).limit(limit).all()
            return [ChatLog.model_validate(r) for r in rows]

    # OAuth token operations
    def upsert_oauth_token(self, platform: str, token_data: OAuthTokenData, user_email: str) -> str:
        """Store credentials, replacing any prior row for (platform, user_email) in full."""
        token_id = str(uuid.uuid4())
        now = utcnow()
        with self._session_scope("upsert_oauth_token") as db:
            db.execute(
                insert(models.OAuthToken).prefix_with("OR REPLACE").values(
                    id=token_id,
                    platform=platform,
                    access_token=token_data.access_token,
                    refresh_token=token_data.refresh_token,
                    expires_at=to_naive_utc(token_data.expires_at),
                    scope=token_data.scope,
                    user_email=user_email,
                    created_at=now,
                    updated_at=now
                )
            )

        logger.info("OAuth token stored", platform=platform, user_email=user_email)
        return token_id

    @_degrades_to(lambda: None)
    def get_oauth_token(self, platform: str, user_email: str) -> Optional[OAuthToken]:
        """Credentials for (platform, user_email), or None."""
        with self._session_scope("get_oauth_token") as db:
            row = db.query(models.OAuthToken).filter(
                models.OAuthToken.platform == platform,
                models.OAuthToken.user_email == user_email
            ).first()
            return OAuthToken.model_validate(row) if row else None

    def refresh_oauth_token(self, token_id: str, new_token_data: OAuthTokenData) -> OAuthToken:
        """Swap in refreshed token material and bump updated_at."""
        with self._session_scope("refresh_oauth_token") as db:
            row = db.get(models.OAuthToken, token_id)
            if row is None:
                raise NotFound("OAuthToken", token_id)

            row.access_token = new_token_data.access_token
            row.refresh_token = new_token_data.refresh_token
            row.expires_at = to_naive_utc(new_token_data.expires_at)
            row.updated_at = utcnow()
            db.flush()
            return OAuthToken.model_validate(row)

    # System settings operations
    def set_setting(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under `key`, replacing any previous one."""
        with self._session_scope("set_setting") as db:
            encoded = encode_json(value, f"setting '{key}'", nullable=False)
            db.execute(
                insert(models.SystemSetting).prefix_with("OR REPLACE").values(
                    key=key,
                    value=encoded,
                    updated_at=utcnow()
                )
            )

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Stored value for `key`; `default` when absent, undecodable or unreadable."""
        try:
            with self._session_scope("get_setting") as db:
                row = db.get(models.SystemSetting, key)
                if row is None:
                    return default
                return decode_json(row.value, f"setting '{key}'")
        except StoreError:
            return default

    # Analytics and reporting
    @_degrades_to(MeetingStats)
    def get_meeting_stats(self) -> MeetingStats:
        """Point-in-time counters for the dashboard."""
        Meeting = models.Meeting
        with self._session_scope("get_meeting_stats") as db:
            total = db.query(func.count(Meeting.id)).scalar() or 0
            completed = db.query(func.count(Meeting.id)).filter(
                Meeting.status == "completed"
            ).scalar() or 0
            active = db.query(func.count(Meeting.id)).filter(
                Meeting.status.in_(ACTIVE_SESSION_STATUSES)
            ).scalar() or 0

            platform_rows = db.query(Meeting.platform, func.count(Meeting.id)).group_by(
                Meeting.platform
            ).order_by(Meeting.platform).all()

            created_day = func.date(Meeting.created_at)
            activity_rows = db.query(created_day, func.count(Meeting.id)).filter(
                Meeting.created_at >= days_ago(self.stats_window_days)
            ).group_by(created_day).order_by(desc(created_day)).all()

        return MeetingStats(
            total_meetings=total,
            completed_meetings=completed,
            active_sessions=active,
            completion_rate=int(completed * 100 / total + 0.5) if total > 0 else 0,
            platform_stats=[PlatformCount(platform=p, count=c) for p, c in platform_rows],
            recent_activity=[
                DailyCount(day=parse_day(d), count=c)
                for d, c in activity_rows
                if parse_day(d) is not None
            ]
        )

    # Database maintenance
    def cleanup_old_data(self, days_to_keep: int = 90) -> int:
        """
        Delete completed sessions created more than `days_to_keep` days ago.

        Participants and email logs go with them through the foreign keys.
        Sessions in any other status are never removed here.

        Returns:
            Number of sessions removed
        """
        if days_to_keep < 0:
            raise ValueError("days_to_keep must be non-negative")

        cutoff = days_ago(days_to_keep)
        with self._session_scope("cleanup_old_data") as db:
            removed = db.query(models.Meeting).filter(
                models.Meeting.status == "completed",
                models.Meeting.created_at < cutoff
            ).delete(synchronize_session=False)

        logger.info(f"Cleaned up {removed} old meetings", removed=removed, cutoff=cutoff.isoformat())
        return removed
