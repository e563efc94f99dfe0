from .store import SeriesPoint, SeriesStore

__all__ = ["SeriesPoint", "SeriesStore"]
