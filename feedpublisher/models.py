"""
Models for feedpublisher module.

Immutable dataclasses shared by the resolver, feed client and coordinator.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class ArtifactKind(Enum):
    """Kind of artifact a work item publishes."""
    PACKAGE = "package"
    BLOB = "blob"


@dataclass(frozen=True)
class PublishWorkItem:
    """One local file to publish under one remote key."""
    local_path: Path
    remote_key: str
    kind: ArtifactKind = ArtifactKind.BLOB

    @property
    def name(self) -> str:
        return self.local_path.name


@dataclass(frozen=True)
class PackageArtifact:
    """Package resolved from the manifest, ready for a feed push."""
    local_path: Path
    id: str
    version: str

    @property
    def remote_key(self) -> str:
        """Flat-container key: ``flatcontainer/{id}/{version}/{id}.{version}.nupkg``."""
        package_id = self.id.lower()
        version = self.version.lower()
        return f"flatcontainer/{package_id}/{version}/{package_id}.{version}.nupkg"

    def to_work_item(self) -> PublishWorkItem:
        return PublishWorkItem(
            local_path=self.local_path,
            remote_key=self.remote_key,
            kind=ArtifactKind.PACKAGE,
        )


@dataclass(frozen=True)
class PushOptions:
    """Immutable push policy consulted by every upload decision."""
    allow_overwrite: bool = False
    # Only consulted when allow_overwrite is False
    pass_if_existing_item_identical: bool = False


class OutcomeStatus(Enum):
    """Terminal state of one work item."""
    CREATED = "created"
    SKIPPED_IDENTICAL = "skipped_identical"
    FAILED = "failed"


class FailureReason(Enum):
    """Why a work item failed."""
    ALREADY_EXISTS = "already_exists"
    CONTENT_MISMATCH = "content_mismatch"
    TRANSPORT = "transport"
    AUTH = "auth"
    TIMEOUT = "timeout"
    LOCAL_FILE = "local_file"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class UploadOutcome:
    """Immutable result of one item's publish attempt."""
    item: PublishWorkItem
    status: OutcomeStatus
    reason: Optional[FailureReason] = None
    detail: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status != OutcomeStatus.FAILED

    @classmethod
    def created(cls, item: PublishWorkItem):
        return cls(item=item, status=OutcomeStatus.CREATED)

    @classmethod
    def skipped(cls, item: PublishWorkItem):
        return cls(item=item, status=OutcomeStatus.SKIPPED_IDENTICAL)

    @classmethod
    def fail(cls, item: PublishWorkItem, reason: FailureReason, detail: str):
        return cls(
            item=item,
            status=OutcomeStatus.FAILED,
            reason=reason,
            detail=detail,
        )


@dataclass(frozen=True)
class ManifestPackage:
    id: str
    version: str


@dataclass(frozen=True)
class ManifestBlob:
    id: str


@dataclass(frozen=True)
class BuildManifest:
    """Packages and blobs a build produced."""
    packages: Tuple[ManifestPackage, ...] = ()
    blobs: Tuple[ManifestBlob, ...] = ()
    name: Optional[str] = None
    build_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.packages and not self.blobs


@dataclass(frozen=True)
class PublishConfig:
    """Immutable configuration for a publish run."""
    feed_url: str
    access_key: str = field(repr=False)
    max_clients: int = 8
    upload_timeout_minutes: float = 5
    http_timeout: float = 60.0  # seconds, per request
    chunk_size: int = 64 * 1024
