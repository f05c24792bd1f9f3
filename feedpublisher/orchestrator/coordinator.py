from pathlib import Path
from typing import List, Optional, Sequence
import asyncio
import logging

from ..errors import (
    AlreadyExistsError,
    ContentMismatchError,
    LocalFileError,
    PublishError,
    PublishTimeoutError,
)
from ..models import FailureReason, OutcomeStatus, PublishWorkItem, PushOptions, UploadOutcome
from ..protocols import IFeedClient
from ..services.comparator import ContentComparator
from .models import PublishReport

logger = logging.getLogger(__name__)


class UploadCoordinator:
    """
    Coordinates parallel publishing of work items under a push policy.

    - At most ``max_clients`` items hold a permit at once
    - Each item runs exists -> policy branch -> upload or compare, in order
    - One item's failure never stops the others
    """

    DEFAULT_MAX_CLIENTS = 8
    DEFAULT_TIMEOUT_MINUTES = 5

    def __init__(
        self,
        feed_client: IFeedClient,
        options: PushOptions,
        max_clients: int = DEFAULT_MAX_CLIENTS,
        upload_timeout_minutes: float = DEFAULT_TIMEOUT_MINUTES,
        comparator: Optional[ContentComparator] = None,
    ):
        if max_clients < 1:
            raise ValueError(f"max_clients must be at least 1, got {max_clients}")
        self._feed = feed_client
        self._options = options
        self._max_clients = max_clients
        self._timeout = upload_timeout_minutes * 60
        self._comparator = comparator or ContentComparator()

    async def publish(self, items: Sequence[PublishWorkItem]) -> PublishReport:
        """
        Publish all items and wait for every one to reach a terminal outcome.

        Outcomes are returned in input order. An empty input performs no I/O.
        """
        if not items:
            logger.debug("Nothing to publish")
            return PublishReport()

        logger.info(
            "Uploading %d items (max %d parallel, timeout %.1f min)",
            len(items), self._max_clients, self._timeout / 60
        )

        # Created per run so permits never leak across event loops
        semaphore = asyncio.Semaphore(self._max_clients)
        tasks = [
            asyncio.create_task(
                self._publish_single(item, semaphore, index=idx, total=len(items))
            )
            for idx, item in enumerate(items, 1)
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes: List[UploadOutcome] = []
        for item, result in zip(items, results):
            if isinstance(result, BaseException):
                # _publish_single only lets cancellation through
                outcomes.append(UploadOutcome.fail(item, FailureReason.UNEXPECTED, repr(result)))
            else:
                outcomes.append(result)

        report = PublishReport(outcomes=outcomes)
        logger.info(
            "Publish complete: %d created, %d skipped (identical), %d failed",
            len(report.created), len(report.skipped), len(report.failed)
        )
        if report.failed:
            logger.error("Failed items:\n%s", report.failure_summary())
        return report

    async def _publish_single(
        self,
        item: PublishWorkItem,
        semaphore: asyncio.Semaphore,
        index: int,
        total: int,
    ) -> UploadOutcome:
        """Publish one item while holding a permit; never raises for item errors."""
        async with semaphore:
            logger.info("[%d/%d] Publishing %s -> %s", index, total, item.name, item.remote_key)
            try:
                outcome = await asyncio.wait_for(self._publish_sequence(item), timeout=self._timeout)
            except asyncio.TimeoutError:
                e = PublishTimeoutError(
                    item.remote_key,
                    f"Publishing '{item.remote_key}' timed out after {self._timeout / 60:g} min",
                )
                logger.error("[%d/%d] %s", index, total, e)
                return UploadOutcome.fail(item, e.reason, str(e))
            except PublishError as e:
                logger.error("[%d/%d] %s: %s", index, total, item.remote_key, e)
                return UploadOutcome.fail(item, e.reason, str(e))
            except Exception as e:
                error_msg = str(e) or f"{type(e).__name__}"
                logger.exception("[%d/%d] Unexpected error publishing %s", index, total, item.remote_key)
                return UploadOutcome.fail(item, FailureReason.UNEXPECTED, error_msg)

            status = "✓ Created" if outcome.status == OutcomeStatus.CREATED else "= Identical, skipped"
            logger.info("[%d/%d] %s: %s", index, total, status, item.remote_key)
            return outcome

    async def _publish_sequence(self, item: PublishWorkItem) -> UploadOutcome:
        """exists -> decide -> act, strictly in that order."""
        self._check_local_file(item.local_path, item.remote_key)

        if await self._feed.exists(item.remote_key):
            if not self._options.allow_overwrite:
                if not self._options.pass_if_existing_item_identical:
                    raise AlreadyExistsError(item.remote_key)

                logger.debug("%s exists, comparing content", item.remote_key)
                return await self._compare_existing(item)

            logger.debug("%s exists, overwriting", item.remote_key)

        try:
            await self._feed.upload(
                item.remote_key,
                item.local_path,
                overwrite=self._options.allow_overwrite,
            )
        except AlreadyExistsError:
            if not self._options.pass_if_existing_item_identical:
                raise
            # Created by another writer after the exists check
            logger.debug("%s appeared during upload, comparing content", item.remote_key)
            return await self._compare_existing(item)
        return UploadOutcome.created(item)

    async def _compare_existing(self, item: PublishWorkItem) -> UploadOutcome:
        identical = await self._comparator.is_identical(
            item.local_path,
            self._feed.iter_remote_chunks(item.remote_key, self._comparator.chunk_size),
        )
        if identical:
            return UploadOutcome.skipped(item)
        raise ContentMismatchError(item.remote_key)

    @staticmethod
    def _check_local_file(local_path: Path, remote_key: str) -> None:
        if not local_path.is_file():
            raise LocalFileError(remote_key, f"Local file not found: {local_path}")
