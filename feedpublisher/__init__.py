"""
feedpublisher - Publish build artifacts to a package feed and blob container.

Follows SOLID principles:
- Single Responsibility: feed I/O, comparison, coordination and resolution are separate
- Dependency Injection: the feed client is injected into the coordinator

Usage:
    from feedpublisher import PublishOrchestrator, PublishConfig, PushOptions

    config = PublishConfig(feed_url="https://feed.example/dotnet/", access_key=key)
    options = PushOptions(pass_if_existing_item_identical=True)

    async with PublishOrchestrator(config, options) as publisher:
        report = await publisher.publish_manifest(
            Path("manifest.xml"),
            package_base_path="artifacts/packages",
            blob_base_path="artifacts/blobs",
        )

    # Publish loose work items directly
    async with HTTPFeedClient(feed_url, key) as feed:
        report = await UploadCoordinator(feed, options, max_clients=4).publish(items)
"""
from .errors import (
    AlreadyExistsError,
    AuthError,
    ConfigurationError,
    ContentMismatchError,
    LocalFileError,
    PublishError,
    PublishTimeoutError,
    TransportError,
)
from .manifest import read_manifest
from .models import (
    ArtifactKind,
    BuildManifest,
    FailureReason,
    OutcomeStatus,
    PackageArtifact,
    PublishConfig,
    PublishWorkItem,
    PushOptions,
    UploadOutcome,
)
from .orchestrator import PublishOrchestrator, PublishReport, UploadCoordinator
from .services import ContentComparator, HTTPFeedClient
from .use_cases import ManifestResolver

__version__ = "0.1.0"
__all__ = [
    # Main
    "PublishOrchestrator",
    "UploadCoordinator",
    "PublishReport",
    # Models
    "ArtifactKind",
    "BuildManifest",
    "FailureReason",
    "OutcomeStatus",
    "PackageArtifact",
    "PublishConfig",
    "PublishWorkItem",
    "PushOptions",
    "UploadOutcome",
    # Services
    "ContentComparator",
    "HTTPFeedClient",
    "ManifestResolver",
    "read_manifest",
    # Errors
    "AlreadyExistsError",
    "AuthError",
    "ConfigurationError",
    "ContentMismatchError",
    "LocalFileError",
    "PublishError",
    "PublishTimeoutError",
    "TransportError",
]
