"""Orchestrator package - coordinates publish workflows."""
from .core import PublishOrchestrator
from .coordinator import UploadCoordinator
from .models import PublishReport

__all__ = ["PublishOrchestrator", "UploadCoordinator", "PublishReport"]
