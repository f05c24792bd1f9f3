"""
Protocols (Interfaces) for Dependency Inversion.

The coordinator only depends on these; tests substitute in-memory feeds.
"""
from pathlib import Path
from typing import AsyncIterator, Protocol, runtime_checkable


@runtime_checkable
class IFeedClient(Protocol):
    """Interface for remote feed operations."""

    async def exists(self, remote_key: str) -> bool:
        """Check whether the remote key is present."""
        ...

    async def upload(self, remote_key: str, local_path: Path, overwrite: bool = False) -> None:
        """Upload local file under the remote key."""
        ...

    def iter_remote_chunks(self, remote_key: str, chunk_size: int = 65536) -> AsyncIterator[bytes]:
        """Stream the remote content for comparison."""
        ...

    async def fetch_for_comparison(self, remote_key: str) -> bytes:
        """Download the full remote content."""
        ...
