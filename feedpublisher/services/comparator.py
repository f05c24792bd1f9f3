"""
Content Comparator - byte-for-byte equality of a local file and a remote stream.

Both sides are consumed incrementally; the first differing chunk ends the
comparison without reading the rest.
"""
import asyncio
import logging
from contextlib import aclosing
from pathlib import Path
from typing import AsyncIterator

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class ContentComparator:
    """Compares local artifacts against remote content."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self._chunk_size = chunk_size

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    async def is_identical(self, local_path: Path, remote_chunks: AsyncIterator[bytes]) -> bool:
        """
        Compare a local file to a stream of remote chunks.

        Remote chunks may have any size; local reads are sized to line up
        with them. The remote stream is closed on early exit.

        Args:
            local_path: Local artifact
            remote_chunks: Async iterator over the remote body

        Returns:
            True if both sides hold exactly the same bytes
        """
        handle = await asyncio.to_thread(open, local_path, "rb")
        try:
            async with aclosing(remote_chunks) as chunks:
                async for remote_chunk in chunks:
                    offset = 0
                    while offset < len(remote_chunk):
                        wanted = min(len(remote_chunk) - offset, self._chunk_size)
                        local_chunk = await asyncio.to_thread(handle.read, wanted)
                        if not local_chunk:
                            logger.debug("Remote content is longer than %s", local_path.name)
                            return False
                        if local_chunk != remote_chunk[offset:offset + len(local_chunk)]:
                            logger.debug("Content differs from %s", local_path.name)
                            return False
                        offset += len(local_chunk)

            trailing = await asyncio.to_thread(handle.read, 1)
            if trailing:
                logger.debug("Local file %s is longer than remote content", local_path.name)
                return False
            return True
        finally:
            handle.close()
