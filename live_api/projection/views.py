"""Proyección pura del estado reconciliado a view-models.

Sin I/O ni estado de tiempo: mismo `ReconciledState` + mismos frames ->
misma vista. Los view-models son dataclasses inmutables serializables con
`dataclasses.asdict`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from ..domain import EntitySnapshot, EntityState, HealthSample, MonitoredServer, MountStat
from ..interpolation import ProgressFrame
from ..state import (
    BANDWIDTH_TOTAL_KEY,
    HEALTH_CPU_KEY,
    HEALTH_MEM_KEY,
    ReconciledState,
    bandwidth_key,
)
from .formatters import (
    format_byte_rate,
    format_bytes,
    format_clock_label,
    format_duration,
    format_percent,
    format_uptime,
)
from .palette import (
    CPU_COLOR,
    DEFAULT_SLOT_COLOR,
    MEM_COLOR,
    SLOT_HEALTH_BADGES,
    STATE_CLASSES,
)

# Barra de red: 1000 kbps llenan la barra
_NET_BAR_KBPS_PER_PCT = 10.0


@dataclass(frozen=True)
class Badge:
    text: str
    css_class: str


@dataclass(frozen=True)
class EncoderRow:
    entity_id: int
    name: str
    state: str
    card_class: str
    badge: Badge
    track_line: str
    position_text: str
    duration_text: str
    progress_pct: Optional[float]
    bar_color: str
    bytes_per_second: float
    byte_rate_text: str
    listeners: int
    uptime_text: str
    actions: Tuple[str, ...]
    volume_pct: Optional[int] = None
    last_error: Optional[str] = None


@dataclass(frozen=True)
class DashboardView:
    api_badge: Badge
    rows: Tuple[EncoderRow, ...]
    total_bytes_per_second: float
    total_rate_text: str
    live_count: int
    total_listeners: int
    version_text: str = ""
    uptime_text: str = ""
    auth_required: bool = False


@dataclass(frozen=True)
class GaugeView:
    label: str
    value_text: str
    bar_pct: float
    detail: str = ""


@dataclass(frozen=True)
class SlotCardView:
    slot_id: int
    title: str
    state: str
    badge: Badge
    track_title: str
    out_kbps_text: str
    listeners_text: str
    sent_text: str


@dataclass(frozen=True)
class SystemHealthView:
    cpu: GaugeView
    mem: GaugeView
    net_in: GaugeView
    net_out: GaugeView
    threads_text: str
    iface_text: str
    sampled_label: str
    slot_cards: Tuple[SlotCardView, ...]


@dataclass(frozen=True)
class ChartDataset:
    label: str
    color: str
    data: Tuple[float, ...]


@dataclass(frozen=True)
class ChartView:
    labels: Tuple[str, ...]
    datasets: Tuple[ChartDataset, ...]


@dataclass(frozen=True)
class ServerRow:
    server_id: int
    name: str
    server_type: str
    address: str
    status: str
    dot_class: str
    listeners: int
    out_kbps: int
    uptime_text: str
    polled_label: str
    mount_count: int = 0


@dataclass(frozen=True)
class MountRow:
    mount: str
    ours_badge: Optional[Badge]
    codec_text: str
    listeners: int
    bitrate_text: str
    title_text: str
    status: str
    dot_class: str


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------


def state_class(state) -> str:
    raw = state.value if isinstance(state, EntityState) else str(state or "")
    return STATE_CLASSES.get(raw.lower(), "idle")


def state_badge(state) -> Badge:
    raw = state.value if isinstance(state, EntityState) else str(state or "idle")
    return Badge(text=(raw or "idle").upper(), css_class=f"state-badge {state_class(state)}")


def api_status_badge(reachable: bool) -> Badge:
    if reachable:
        return Badge(text="API: Online", css_class="badge badge-green")
    return Badge(text="API: Offline", css_class="badge badge-red")


def available_actions(state) -> Tuple[str, ...]:
    if state_class(state) in ("live", "connecting"):
        return ("stop", "restart")
    return ("start",)


# ---------------------------------------------------------------------------
# Encoders
# ---------------------------------------------------------------------------


def project_encoder_row(
    snapshot: EntitySnapshot,
    frame: Optional[ProgressFrame],
    bytes_per_second: float = 0.0,
    color: str = DEFAULT_SLOT_COLOR,
) -> EncoderRow:
    """Una fila/tarjeta de slot a partir del snapshot y su frame interpolado."""
    is_live = frame.is_live if frame is not None else False
    duration = snapshot.duration_ms or 0

    if is_live:
        position_ms = frame.position_ms
        progress_pct = frame.progress_pct
        uptime_s = frame.elapsed_ms // 1000
    else:
        # Fuera de live la barra queda fija en 0
        position_ms = 0
        progress_pct = 0.0
        uptime_s = snapshot.uptime_sec or 0

    volume_pct = None
    if snapshot.volume is not None:
        volume_pct = int(round(snapshot.volume * 100))

    return EncoderRow(
        entity_id=snapshot.entity_id,
        name=snapshot.display_name,
        state=snapshot.state.value,
        card_class=f"slot-card {state_class(snapshot.state)}",
        badge=state_badge(snapshot.state),
        track_line=snapshot.track_line,
        position_text=format_duration(position_ms) if is_live and duration else "",
        duration_text=format_duration(duration) if duration else "",
        progress_pct=progress_pct,
        bar_color=frame.color if frame is not None else color,
        bytes_per_second=bytes_per_second,
        byte_rate_text=format_byte_rate(bytes_per_second),
        listeners=snapshot.listeners,
        uptime_text=format_uptime(uptime_s),
        actions=available_actions(snapshot.state),
        volume_pct=volume_pct,
        last_error=snapshot.last_error,
    )


def project_dashboard(state: ReconciledState, frames: Mapping[int, ProgressFrame]) -> DashboardView:
    rows = tuple(
        project_encoder_row(
            snap,
            frames.get(eid),
            state.rate_for(eid),
            state.colors.get(eid, DEFAULT_SLOT_COLOR),
        )
        for eid, snap in state.entities.items()
    )
    status = state.server_status
    return DashboardView(
        api_badge=api_status_badge(state.api_health.reachable),
        rows=rows,
        total_bytes_per_second=state.total_bytes_per_second,
        total_rate_text=format_byte_rate(state.total_bytes_per_second),
        live_count=sum(1 for s in state.entities.values() if s.is_live),
        total_listeners=sum(s.listeners for s in state.entities.values()),
        version_text=f"v{status.version}" if status and status.version else "",
        uptime_text=f"Up: {status.uptime}" if status and status.uptime else "",
        auth_required=state.auth_required,
    )


# ---------------------------------------------------------------------------
# Salud del sistema
# ---------------------------------------------------------------------------


def _bar(pct: float) -> float:
    return min(100.0, max(0.0, float(pct)))


def _slot_card(slot) -> SlotCardView:
    color = SLOT_HEALTH_BADGES.get(slot.state, "gray")
    return SlotCardView(
        slot_id=slot.slot_id,
        title=f"Slot {slot.slot_id}",
        state=slot.state,
        badge=Badge(text=slot.state.upper(), css_class=f"badge badge-{color}"),
        track_title=slot.track_title or "—",
        out_kbps_text=f"{slot.out_kbps} kbps",
        listeners_text=f"{slot.listeners} listeners",
        sent_text=f"{format_bytes(slot.bytes_out)} sent",
    )


def project_system_health(sample: Optional[HealthSample]) -> Optional[SystemHealthView]:
    if sample is None:
        return None
    return SystemHealthView(
        cpu=GaugeView("CPU", format_percent(sample.cpu_pct), _bar(sample.cpu_pct)),
        mem=GaugeView(
            "Memory",
            format_percent(sample.mem_pct),
            _bar(sample.mem_pct),
            detail=f"{sample.mem_used_mb} / {sample.mem_total_mb} MB",
        ),
        net_in=GaugeView(
            "Net in",
            str(sample.net_in_kbps),
            _bar(sample.net_in_kbps / _NET_BAR_KBPS_PER_PCT),
            detail="kbps",
        ),
        net_out=GaugeView(
            "Net out",
            str(sample.net_out_kbps),
            _bar(sample.net_out_kbps / _NET_BAR_KBPS_PER_PCT),
            detail="kbps",
        ),
        threads_text=f"threads: {sample.thread_count}",
        iface_text=f"iface: {sample.net_iface or '—'}",
        sampled_label=format_clock_label(sample.sampled_at * 1000.0) if sample.sampled_at else "",
        slot_cards=tuple(_slot_card(s) for s in sample.slots),
    )


# ---------------------------------------------------------------------------
# Gráficos
# ---------------------------------------------------------------------------


def project_bandwidth_chart(state: ReconciledState) -> ChartView:
    """Un dataset por slot (orden del listado) sobre las etiquetas del total."""
    labels = tuple(p.label for p in state.series_points(BANDWIDTH_TOTAL_KEY))
    datasets = tuple(
        ChartDataset(
            label=snap.display_name,
            color=state.colors.get(eid, DEFAULT_SLOT_COLOR),
            data=tuple(p.value for p in state.series_points(bandwidth_key(eid))),
        )
        for eid, snap in state.entities.items()
    )
    return ChartView(labels=labels, datasets=datasets)


def project_health_chart(state: ReconciledState) -> ChartView:
    cpu = state.series_points(HEALTH_CPU_KEY)
    mem = state.series_points(HEALTH_MEM_KEY)
    return ChartView(
        labels=tuple(p.label for p in cpu),
        datasets=(
            ChartDataset("CPU %", CPU_COLOR, tuple(p.value for p in cpu)),
            ChartDataset("Mem %", MEM_COLOR, tuple(p.value for p in mem)),
        ),
    )


# ---------------------------------------------------------------------------
# Servidores monitorizados
# ---------------------------------------------------------------------------


def project_server_row(server: MonitoredServer) -> ServerRow:
    return ServerRow(
        server_id=server.server_id,
        name=server.name,
        server_type=server.server_type,
        address=f"{server.host}:{server.port}",
        status=server.status,
        dot_class=f"dot {server.status}",
        listeners=server.listeners,
        out_kbps=server.out_kbps,
        uptime_text=server.uptime or "—",
        polled_label=format_clock_label(server.polled_at * 1000.0) if server.polled_at else "—",
        mount_count=len(server.mounts),
    )


def project_servers(state: ReconciledState) -> Tuple[ServerRow, ...]:
    return tuple(project_server_row(s) for s in state.servers)


def project_mount_row(mount: MountStat) -> MountRow:
    status = "online" if mount.online else "offline"
    return MountRow(
        mount=mount.mount,
        ours_badge=Badge("ours", "badge badge-teal") if mount.ours else None,
        codec_text=mount.codec or "—",
        listeners=mount.listeners,
        bitrate_text=f"{mount.bitrate} kbps",
        title_text=mount.title or "—",
        status=status,
        dot_class=f"dot {status}",
    )


def project_mount_rows(server: MonitoredServer) -> Tuple[MountRow, ...]:
    return tuple(project_mount_row(m) for m in server.mounts)
