"""Core orchestrator - coordinates a full manifest publish."""
from pathlib import Path
from typing import Optional, Sequence

from ..errors import ConfigurationError
from ..models import PackageArtifact, PublishConfig, PublishWorkItem, PushOptions
from ..protocols import IFeedClient
from ..services.comparator import ContentComparator
from ..services.feed_client import HTTPFeedClient
from ..use_cases.resolve import ManifestResolver

from .coordinator import UploadCoordinator
from .models import PublishReport

import logging
logger = logging.getLogger(__name__)


class PublishOrchestrator:
    """
    Publishes a build manifest to a feed using injected services.

    Packages go through one feed push, blobs through one flat-container
    push. Failures are collected into the returned report; nothing short of
    cancellation escapes ``publish_manifest``.

    Usage:
        async with PublishOrchestrator(config, PushOptions()) as publisher:
            report = await publisher.publish_manifest(manifest, packages_dir, blobs_dir)
            if not report.success:
                print(report.failure_summary())
    """

    def __init__(
        self,
        config: PublishConfig,
        options: Optional[PushOptions] = None,
        feed_client: Optional[IFeedClient] = None,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            config: Feed endpoint, credential and concurrency settings
            options: Push policy (default: no overwrite, no identical check)
            feed_client: Pre-built feed client (default: HTTPFeedClient from config)
        """
        self._config = config
        self._options = options or PushOptions()
        self._owns_client = feed_client is None
        self._feed = feed_client or HTTPFeedClient(
            config.feed_url,
            config.access_key,
            timeout=config.http_timeout,
            chunk_size=config.chunk_size,
        )
        self._coordinator = UploadCoordinator(
            self._feed,
            self._options,
            max_clients=config.max_clients,
            upload_timeout_minutes=config.upload_timeout_minutes,
            comparator=ContentComparator(config.chunk_size),
        )

    async def __aenter__(self):
        if self._owns_client:
            await self._feed.__aenter__()
        return self

    async def __aexit__(self, *args):
        if self._owns_client:
            await self._feed.__aexit__(*args)

    async def publish_manifest(
        self,
        manifest_path: Path,
        package_base_path: Optional[str] = None,
        blob_base_path: Optional[str] = None,
    ) -> PublishReport:
        """
        Resolve the manifest and publish packages, then blobs.

        Configuration problems abort before any network call.
        """
        logger.info("Performing push feeds.")
        try:
            resolver = ManifestResolver(package_base_path, blob_base_path)
            work = resolver.resolve_manifest_file(Path(manifest_path))

            package_report = await self.push_packages(work.packages)
            blob_report = await self.publish_blobs(work.blobs)
            return PublishReport.combine(package_report, blob_report)
        except ConfigurationError as e:
            logger.error("%s", e)
            return PublishReport(errors=[str(e)])
        except Exception as e:
            logger.exception("Publish run failed unexpectedly")
            return PublishReport(errors=[f"{type(e).__name__}: {e}"])

    async def push_packages(self, packages: Sequence[PackageArtifact]) -> PublishReport:
        """Push resolved packages through the feed client."""
        if not packages:
            return PublishReport()
        push = getattr(self._feed, "push_packages", None)
        if callable(push):
            return await push(
                packages,
                self._options,
                max_clients=self._config.max_clients,
                upload_timeout_minutes=self._config.upload_timeout_minutes,
            )
        return await self._coordinator.publish([package.to_work_item() for package in packages])

    async def publish_blobs(self, items: Sequence[PublishWorkItem]) -> PublishReport:
        """Publish blobs to the flat container."""
        if not items:
            return PublishReport()
        logger.info("Uploading %d blob(s) to flat container", len(items))
        return await self._coordinator.publish(items)
