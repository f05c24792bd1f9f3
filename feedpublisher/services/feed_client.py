"""HTTP adapter for the remote package feed and flat blob container."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, AsyncIterator, Iterable, Optional
from urllib.parse import quote

import httpx

from ..errors import AlreadyExistsError, AuthError, LocalFileError, TransportError
from ..models import PackageArtifact, PushOptions
from .comparator import DEFAULT_CHUNK_SIZE

if TYPE_CHECKING:
    from ..orchestrator.models import PublishReport

logger = logging.getLogger(__name__)


def normalize_remote_key(remote_key: str) -> str:
    """Feed-relative key with ``/`` separators and no leading slash."""
    key = remote_key.replace("\\", "/").lstrip("/")
    if not key:
        raise ValueError("remote key must not be empty")
    if any(segment in (".", "..") for segment in key.split("/")):
        raise ValueError(f"remote key must not contain relative segments: {remote_key!r}")
    return key


class HTTPFeedClient:
    """
    HTTP client adapter for feed operations.

    Implements IFeedClient protocol. Owns the feed endpoint and credential;
    neither changes after construction.

    Usage:
        async with HTTPFeedClient(feed_url, access_key) as feed:
            if not await feed.exists("assets/symbols.zip"):
                await feed.upload("assets/symbols.zip", path)
    """

    def __init__(
        self,
        feed_url: str,
        access_key: str,
        timeout: float = 60,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._feed_url = feed_url if feed_url.endswith("/") else f"{feed_url}/"
        self._access_key = access_key
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def feed_url(self) -> str:
        return self._feed_url

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._feed_url,
            headers={"Authorization": f"Bearer {self._access_key}"},
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("HTTPFeedClient not initialized. Use 'async with' context.")
        return self._client

    @staticmethod
    def _url(remote_key: str) -> str:
        return quote(normalize_remote_key(remote_key), safe="/")

    @staticmethod
    def _raise_for_status(response: httpx.Response, method: str, remote_key: str) -> None:
        if response.status_code in (401, 403):
            raise AuthError(
                remote_key,
                f"Feed rejected credential ({response.status_code}) on {method} {remote_key}",
            )
        if response.status_code >= 400:
            raise TransportError(
                remote_key,
                f"Feed error {response.status_code} on {method} {remote_key}",
            )

    async def exists(self, remote_key: str) -> bool:
        """
        Check if an item exists in the feed.

        Args:
            remote_key: Feed-relative key (e.g., "assets/symbols.zip")

        Returns:
            True if exists, False otherwise
        """
        client = self._require_client()
        try:
            response = await client.head(self._url(remote_key))
        except httpx.HTTPError as exc:
            raise TransportError(remote_key, f"HEAD {remote_key} failed: {exc}") from exc

        if response.status_code == 404:
            return False
        self._raise_for_status(response, "HEAD", remote_key)
        return True

    async def upload(self, remote_key: str, local_path: Path, overwrite: bool = False) -> None:
        """
        Upload a local file under the remote key.

        Without ``overwrite`` the request is conditional (``If-None-Match: *``)
        so an item created concurrently by another writer is never replaced.
        """
        client = self._require_client()
        try:
            size = local_path.stat().st_size
        except OSError as exc:
            raise LocalFileError(remote_key, f"Cannot read {local_path}: {exc}") from exc

        headers = {
            "Content-Length": str(size),
            "Content-Type": "application/octet-stream",
        }
        if not overwrite:
            headers["If-None-Match"] = "*"

        logger.debug("PUT %s (%d bytes) from %s", remote_key, size, local_path)
        try:
            response = await client.put(
                self._url(remote_key),
                content=self._iter_local_chunks(local_path),
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise TransportError(remote_key, f"PUT {remote_key} failed: {exc}") from exc

        if response.status_code in (409, 412):
            raise AlreadyExistsError(remote_key)
        self._raise_for_status(response, "PUT", remote_key)

    async def iter_remote_chunks(
        self,
        remote_key: str,
        chunk_size: Optional[int] = None,
    ) -> AsyncIterator[bytes]:
        """Stream remote content without buffering it in memory."""
        client = self._require_client()
        try:
            async with client.stream("GET", self._url(remote_key)) as response:
                self._raise_for_status(response, "GET", remote_key)
                async for chunk in response.aiter_bytes(chunk_size or self._chunk_size):
                    yield chunk
        except httpx.HTTPError as exc:
            raise TransportError(remote_key, f"GET {remote_key} failed: {exc}") from exc

    async def fetch_for_comparison(self, remote_key: str) -> bytes:
        """Download the full remote content."""
        chunks = []
        async for chunk in self.iter_remote_chunks(remote_key):
            chunks.append(chunk)
        return b"".join(chunks)

    async def push_packages(
        self,
        packages: Iterable[PackageArtifact],
        options: PushOptions,
        max_clients: int = 8,
        upload_timeout_minutes: float = 5,
    ) -> "PublishReport":
        """
        Push packages to the flat container, one policy decision per package.

        Args:
            packages: Resolved packages (local path, id, version)
            options: Push policy
            max_clients: Maximum packages in flight
            upload_timeout_minutes: Per-package timeout

        Returns:
            PublishReport with one outcome per package
        """
        from ..orchestrator.coordinator import UploadCoordinator
        from .comparator import ContentComparator

        items = [package.to_work_item() for package in packages]
        coordinator = UploadCoordinator(
            self,
            options,
            max_clients=max_clients,
            upload_timeout_minutes=upload_timeout_minutes,
            comparator=ContentComparator(self._chunk_size),
        )
        logger.info("Pushing %d package(s) to %s", len(items), self._feed_url)
        return await coordinator.publish(items)

    async def _iter_local_chunks(self, local_path: Path) -> AsyncIterator[bytes]:
        """Read file in chunks off the event loop."""
        handle = await asyncio.to_thread(open, local_path, "rb")
        try:
            while True:
                chunk = await asyncio.to_thread(handle.read, self._chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            handle.close()
