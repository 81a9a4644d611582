"""Enumerated values accepted by the store's CHECK constraints."""

PLATFORMS = ("zoom", "teams", "gmeet", "cliq")

SESSION_STATUSES = ("provisioning", "recording", "processing", "completed", "failed")
ACTIVE_SESSION_STATUSES = ("recording", "processing")

PARTICIPANT_ROLES = ("organizer", "participant", "observer")
DEFAULT_PARTICIPANT_ROLE = "participant"

EMAIL_STATUSES = ("pending", "sent", "failed", "bounced")
RETRYABLE_EMAIL_STATUSES = ("pending", "failed")
