"""Use case: turn manifest records into local-file / remote-key work items."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..errors import ConfigurationError
from ..manifest import read_manifest
from ..models import ArtifactKind, BuildManifest, PackageArtifact, PublishWorkItem
from ..services.feed_client import normalize_remote_key

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE_EXTENSION = "nupkg"


def normalize_base_path(value: Optional[str | Path]) -> Optional[str]:
    """Return ``value`` ending with the path separator, or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text if text.endswith(os.sep) else text + os.sep


@dataclass
class ResolvedWork:
    """Packages and blobs ready for publishing."""
    packages: List[PackageArtifact] = field(default_factory=list)
    blobs: List[PublishWorkItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.packages) + len(self.blobs)


class ManifestResolver:
    """
    Maps manifest entries to local paths and feed keys.

    Packages resolve to ``{package_base}{id}.{version}.{extension}``, blobs to
    ``{blob_base}{id}`` with the blob id as remote key.
    """

    def __init__(
        self,
        package_base_path: Optional[str | Path] = None,
        blob_base_path: Optional[str | Path] = None,
        package_extension: str = DEFAULT_PACKAGE_EXTENSION,
    ):
        self._package_base = normalize_base_path(package_base_path)
        self._blob_base = normalize_base_path(blob_base_path)
        self._package_extension = package_extension.lstrip(".")

    @property
    def package_base_path(self) -> Optional[str]:
        return self._package_base

    @property
    def blob_base_path(self) -> Optional[str]:
        return self._blob_base

    def resolve(self, manifest: BuildManifest) -> ResolvedWork:
        """
        Resolve a parsed manifest.

        Raises:
            ConfigurationError: If a non-empty collection has no base path
        """
        self._validate(manifest)

        packages = [
            PackageArtifact(
                local_path=Path(
                    f"{self._package_base}{package.id}.{package.version}.{self._package_extension}"
                ),
                id=package.id,
                version=package.version,
            )
            for package in manifest.packages
        ]
        blobs = [
            PublishWorkItem(
                local_path=Path(f"{self._blob_base}{blob.id}"),
                remote_key=self._blob_key(blob.id),
                kind=ArtifactKind.BLOB,
            )
            for blob in manifest.blobs
        ]

        logger.debug("Resolved %d package(s) and %d blob(s)", len(packages), len(blobs))
        return ResolvedWork(packages=packages, blobs=blobs)

    def resolve_manifest_file(self, manifest_path: Path) -> ResolvedWork:
        """Read the manifest at ``manifest_path`` and resolve it."""
        return self.resolve(read_manifest(manifest_path))

    @staticmethod
    def _blob_key(blob_id: str) -> str:
        try:
            return normalize_remote_key(blob_id)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid blob id {blob_id!r}: {exc}") from exc

    def _validate(self, manifest: BuildManifest) -> None:
        if manifest.is_empty:
            return
        if self._package_base is None and self._blob_base is None:
            raise ConfigurationError("Base path for package and assets is invalid.")
        if manifest.packages and self._package_base is None:
            raise ConfigurationError(
                f"Manifest lists {len(manifest.packages)} package(s) but no package base path is set"
            )
        if manifest.blobs and self._blob_base is None:
            raise ConfigurationError(
                f"Manifest lists {len(manifest.blobs)} blob(s) but no blob base path is set"
            )
