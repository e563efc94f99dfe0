from .api_health import ApiHealthMonitor, ApiHealthState

__all__ = ["ApiHealthMonitor", "ApiHealthState"]
