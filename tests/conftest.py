"""Shared fixtures: in-memory and HTTP-level stand-ins for the remote feed."""
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, Optional

import httpx
import pytest

from feedpublisher.errors import AlreadyExistsError


class InMemoryFeed:
    """
    Feed client double implementing IFeedClient.

    Records call counts and the high-water mark of concurrently running calls.
    """

    def __init__(self, items: Optional[Dict[str, bytes]] = None, delay: float = 0.0):
        self.items: Dict[str, bytes] = dict(items or {})
        self.delay = delay
        self.calls = {"exists": 0, "upload": 0, "fetch": 0}
        self.uploaded = []
        self.active = 0
        self.high_water = 0

    @asynccontextmanager
    async def _tracked(self):
        self.active += 1
        self.high_water = max(self.high_water, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield
        finally:
            self.active -= 1

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def exists(self, remote_key: str) -> bool:
        self.calls["exists"] += 1
        async with self._tracked():
            return remote_key in self.items

    async def upload(self, remote_key: str, local_path: Path, overwrite: bool = False) -> None:
        self.calls["upload"] += 1
        async with self._tracked():
            if not overwrite and remote_key in self.items:
                raise AlreadyExistsError(remote_key)
            self.items[remote_key] = local_path.read_bytes()
            self.uploaded.append(remote_key)

    async def iter_remote_chunks(self, remote_key: str, chunk_size: int = 65536):
        self.calls["fetch"] += 1
        async with self._tracked():
            data = self.items[remote_key]
        for start in range(0, len(data), chunk_size):
            yield data[start:start + chunk_size]

    async def fetch_for_comparison(self, remote_key: str) -> bytes:
        chunks = [chunk async for chunk in self.iter_remote_chunks(remote_key)]
        return b"".join(chunks)


class FakeFeedServer:
    """Minimal blob store speaking HEAD/GET/PUT."""

    def __init__(self, token: str = "secret", items: Optional[Dict[str, bytes]] = None):
        self.token = token
        self.items: Dict[str, bytes] = dict(items or {})
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401)

        key = request.url.path.removeprefix("/feed/")
        if request.method == "HEAD":
            return httpx.Response(200 if key in self.items else 404)
        if request.method == "GET":
            if key not in self.items:
                return httpx.Response(404)
            return httpx.Response(200, content=self.items[key])
        if request.method == "PUT":
            if request.headers.get("If-None-Match") == "*" and key in self.items:
                return httpx.Response(409)
            self.items[key] = request.content
            return httpx.Response(201)
        return httpx.Response(405)


@pytest.fixture
def feed():
    return InMemoryFeed()


@pytest.fixture
def artifacts_dir(tmp_path):
    """Build output layout with one package and one blob."""
    packages = tmp_path / "packages"
    blobs = tmp_path / "blobs"
    packages.mkdir()
    blobs.mkdir()
    (packages / "Foo.1.0.0.nupkg").write_bytes(b"PK\x03\x04 foo package")
    (blobs / "symbols.zip").write_bytes(b"symbols archive v1")
    return tmp_path


@pytest.fixture
def manifest_path(tmp_path):
    path = tmp_path / "manifest.xml"
    path.write_text(
        '<Build Name="product" BuildId="20240101.1">\n'
        '  <Package Id="Foo" Version="1.0.0" />\n'
        '  <Blob Id="symbols.zip" />\n'
        "</Build>\n",
        encoding="utf-8",
    )
    return path
