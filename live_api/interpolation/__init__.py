from .engine import InterpolationEngine, project_progress, seed_from_snapshot
from .models import LiveInterpolationState, ProgressFrame

__all__ = [
    "InterpolationEngine",
    "LiveInterpolationState",
    "ProgressFrame",
    "project_progress",
    "seed_from_snapshot",
]
