"""Invitation module constants."""

# Mail template rendered by the provider
INVITATION_TEMPLATE = "invitation"

# Token length in characters (secrets.token_urlsafe output is trimmed to this)
INVITATION_TOKEN_LENGTH = 64

# Celery
INVITATION_TASK_NAME = "invitation.send_invitation_email"
NOTIFICATIONS_QUEUE = "notifications"

# Accept / decline links, relative to settings.app_url
ACCEPT_PATH = "/invitations/{token}/accept"
DECLINE_PATH = "/invitations/{token}/decline"

# Default batch name when the caller does not supply one
DEFAULT_BATCH_NAME = "Bulk invitations"

# ---------------------------------------------------------------------------
# Log event names
# ---------------------------------------------------------------------------

EVENT_SENDING = "invitation.sending"
EVENT_SENT = "invitation.sent"
EVENT_ATTEMPT_FAILED = "invitation.attempt_failed"
EVENT_DELETED_AFTER_FAILURE = "invitation.deleted_after_failure"
EVENT_FAILED_PERMANENTLY = "invitation.failed_permanently"
