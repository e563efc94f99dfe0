"""Projection layer - funciones puras estado -> view-models."""

from .formatters import (
    format_byte_rate,
    format_bytes,
    format_clock_label,
    format_duration,
    format_uptime,
)
from .palette import SLOT_COLORS, slot_color
from .views import (
    Badge,
    ChartDataset,
    ChartView,
    DashboardView,
    EncoderRow,
    GaugeView,
    MountRow,
    ServerRow,
    SlotCardView,
    SystemHealthView,
    api_status_badge,
    available_actions,
    project_bandwidth_chart,
    project_dashboard,
    project_encoder_row,
    project_health_chart,
    project_mount_rows,
    project_server_row,
    project_servers,
    project_system_health,
    state_badge,
    state_class,
)

__all__ = [
    "Badge",
    "ChartDataset",
    "ChartView",
    "DashboardView",
    "EncoderRow",
    "GaugeView",
    "MountRow",
    "SLOT_COLORS",
    "ServerRow",
    "SlotCardView",
    "SystemHealthView",
    "api_status_badge",
    "available_actions",
    "format_byte_rate",
    "format_bytes",
    "format_clock_label",
    "format_duration",
    "format_uptime",
    "project_bandwidth_chart",
    "project_dashboard",
    "project_encoder_row",
    "project_health_chart",
    "project_mount_rows",
    "project_server_row",
    "project_servers",
    "project_system_health",
    "slot_color",
]
