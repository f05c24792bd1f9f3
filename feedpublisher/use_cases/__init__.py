"""
Use cases - input-side workflows feeding the publish orchestrator.
"""
from .resolve import ManifestResolver, ResolvedWork, normalize_base_path

__all__ = [
    "ManifestResolver",
    "ResolvedWork",
    "normalize_base_path",
]
