"""Read build manifests listing the packages and blobs to publish.

Two formats are accepted. XML build manifests::

    <Build Name="product" BuildId="20240101.1">
      <Package Id="Foo" Version="1.0.0" />
      <Blob Id="symbols.zip" />
    </Build>

and the same content as JSON (``.json`` suffix)::

    {"name": "product", "buildId": "20240101.1",
     "packages": [{"id": "Foo", "version": "1.0.0"}],
     "blobs": [{"id": "symbols.zip"}]}
"""
from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

from .errors import ConfigurationError
from .models import BuildManifest, ManifestBlob, ManifestPackage

logger = logging.getLogger(__name__)


def _lower_keys(mapping: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(key).lower(): value for key, value in mapping.items()}


def _require(attrs: Mapping[str, Any], key: str, kind: str, path: Path) -> str:
    value = attrs.get(key.lower())
    if value is None or not str(value).strip():
        raise ConfigurationError(f"{kind} entry without '{key}' in manifest {path}")
    return str(value).strip()


def _local_name(tag: str) -> str:
    # Strip "{namespace}" prefixes
    return tag.rsplit("}", 1)[-1].lower()


def _parse_xml(text: str, path: Path) -> BuildManifest:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ConfigurationError(f"Malformed manifest {path}: {exc}") from exc

    packages = []
    blobs = []
    for element in root.iter():
        name = _local_name(element.tag)
        if name == "package":
            attrs = _lower_keys(element.attrib)
            packages.append(
                ManifestPackage(
                    id=_require(attrs, "Id", "Package", path),
                    version=_require(attrs, "Version", "Package", path),
                )
            )
        elif name == "blob":
            attrs = _lower_keys(element.attrib)
            blobs.append(ManifestBlob(id=_require(attrs, "Id", "Blob", path)))

    root_attrs = _lower_keys(root.attrib)
    return BuildManifest(
        packages=tuple(packages),
        blobs=tuple(blobs),
        name=root_attrs.get("name"),
        build_id=root_attrs.get("buildid"),
    )


def _entries(data: Mapping[str, Any], key: str, path: Path) -> Iterable[Dict[str, Any]]:
    raw = data.get(key) or []
    if not isinstance(raw, list):
        raise ConfigurationError(f"'{key}' must be a list in manifest {path}")
    for entry in raw:
        if not isinstance(entry, dict):
            raise ConfigurationError(f"'{key}' entries must be objects in manifest {path}")
        yield _lower_keys(entry)


def _parse_json(text: str, path: Path) -> BuildManifest:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Malformed manifest {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Manifest {path} must contain a JSON object")

    data = _lower_keys(data)
    packages = tuple(
        ManifestPackage(
            id=_require(entry, "Id", "Package", path),
            version=_require(entry, "Version", "Package", path),
        )
        for entry in _entries(data, "packages", path)
    )
    blobs = tuple(
        ManifestBlob(id=_require(entry, "Id", "Blob", path))
        for entry in _entries(data, "blobs", path)
    )
    build_id: Optional[Any] = data.get("buildid")
    return BuildManifest(
        packages=packages,
        blobs=blobs,
        name=data.get("name"),
        build_id=str(build_id) if build_id is not None else None,
    )


def read_manifest(path: Path) -> BuildManifest:
    """
    Load the build manifest at ``path``.

    Raises:
        ConfigurationError: If the manifest is missing, unreadable or malformed
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Problem reading asset manifest path from {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Could not read manifest {path}: {exc}") from exc

    if path.suffix.lower() == ".json":
        manifest = _parse_json(text, path)
    else:
        manifest = _parse_xml(text, path)

    logger.info(
        "Manifest %s: %d package(s), %d blob(s)",
        path.name, len(manifest.packages), len(manifest.blobs)
    )
    return manifest
