"""Services for feedpublisher module."""
from .comparator import ContentComparator
from .feed_client import HTTPFeedClient, normalize_remote_key

__all__ = [
    "ContentComparator",
    "HTTPFeedClient",
    "normalize_remote_key",
]
