"""Error taxonomy for publish runs."""
from typing import Optional

from .models import FailureReason


class ConfigurationError(RuntimeError):
    """Raised before any network call when the run cannot start."""


class PublishError(RuntimeError):
    """Base class for errors attributed to a single work item."""

    reason = FailureReason.UNEXPECTED

    def __init__(self, remote_key: str, message: Optional[str] = None):
        self.remote_key = remote_key
        super().__init__(message or f"{self.reason.value}: {remote_key}")


class AlreadyExistsError(PublishError):
    """Remote key exists and the policy forbids touching it."""

    reason = FailureReason.ALREADY_EXISTS

    def __init__(self, remote_key: str, message: Optional[str] = None):
        super().__init__(
            remote_key,
            message or f"Item '{remote_key}' already exists in the feed and overwrite is disabled",
        )


class ContentMismatchError(PublishError):
    """Remote key exists with different bytes than the local artifact."""

    reason = FailureReason.CONTENT_MISMATCH

    def __init__(self, remote_key: str, message: Optional[str] = None):
        super().__init__(
            remote_key,
            message or f"Item '{remote_key}' already exists in the feed with different content",
        )


class TransportError(PublishError):
    """Network failure or unexpected HTTP status."""

    reason = FailureReason.TRANSPORT


class AuthError(PublishError):
    """Feed rejected the credential."""

    reason = FailureReason.AUTH


class PublishTimeoutError(PublishError):
    reason = FailureReason.TIMEOUT


class LocalFileError(PublishError):
    """Local artifact is missing or unreadable."""

    reason = FailureReason.LOCAL_FILE
