"""Tests de formateadores y de la proyección pura a view-models."""

from datetime import timezone

import pytest

from live_api.domain import (
    EntitySnapshot,
    EntityState,
    HealthSample,
    MonitoredServer,
    MountStat,
    ServerStatus,
    SlotHealth,
)
from live_api.interpolation import ProgressFrame
from live_api.monitoring import ApiHealthState
from live_api.projection import (
    api_status_badge,
    format_byte_rate,
    format_bytes,
    format_clock_label,
    format_duration,
    format_uptime,
    project_bandwidth_chart,
    project_dashboard,
    project_encoder_row,
    project_health_chart,
    project_mount_rows,
    project_server_row,
    project_servers,
    project_system_health,
    state_class,
)
from live_api.rates import RateTick
from live_api.series import SeriesPoint
from live_api.state import BANDWIDTH_TOTAL_KEY, HEALTH_CPU_KEY, HEALTH_MEM_KEY, ReconciledState, bandwidth_key


def _snap(entity_id=1, state=EntityState.LIVE, **fields) -> EntitySnapshot:
    values = dict(
        entity_id=entity_id,
        state=state,
        position_ms=10000,
        duration_ms=60000,
        bytes_sent=0,
        listeners=4,
        observed_at_ms=0,
        track_title="Song",
        track_artist="Artist",
        uptime_sec=75,
        volume=0.8,
    )
    values.update(fields)
    return EntitySnapshot(**values)


def _frame(entity_id=1, is_live=True, position=12500, duration=60000, fraction=12500 / 60000):
    return ProgressFrame(
        entity_id=entity_id,
        is_live=is_live,
        position_ms=position,
        duration_ms=duration,
        progress_fraction=fraction,
        elapsed_ms=77500,
        color="#14b8a6",
    )


# =============================================================================
# FORMATTERS
# =============================================================================

class TestFormatters:

    @pytest.mark.parametrize("ms,expected", [(0, "0:00"), (12500, "0:12"), (125000, "2:05"), (None, "0:00")])
    def test_format_duration(self, ms, expected):
        assert format_duration(ms) == expected

    @pytest.mark.parametrize("seconds,expected", [
        (0, ""), (None, ""), (5, "5s"), (75, "1m 15s"), (3725, "1h 2m"),
    ])
    def test_format_uptime(self, seconds, expected):
        assert format_uptime(seconds) == expected

    @pytest.mark.parametrize("rate,expected", [
        (0, "0 B/s"), (512, "512 B/s"), (10000, "9.8 KB/s"), (1048576, "1.0 MB/s"),
    ])
    def test_format_byte_rate(self, rate, expected):
        assert format_byte_rate(rate) == expected

    @pytest.mark.parametrize("value,expected", [
        (0, "0 B"), (1000, "1000 B"), (2048, "2.0 KB"), (5 * 1048576, "5.00 MB"), (3 * 1073741824, "3.00 GB"),
    ])
    def test_format_bytes(self, value, expected):
        assert format_bytes(value) == expected

    def test_clock_label(self):
        assert format_clock_label(3_723_000, tz=timezone.utc) == "01:02:03"


# =============================================================================
# BADGES
# =============================================================================

class TestBadges:

    @pytest.mark.parametrize("state,expected", [
        ("live", "live"), ("reconnecting", "connecting"), ("starting", "connecting"),
        ("stopping", "idle"), ("error", "error"), ("weird", "idle"), (EntityState.IDLE, "idle"),
    ])
    def test_state_class(self, state, expected):
        assert state_class(state) == expected

    def test_api_badge(self):
        assert api_status_badge(True).text == "API: Online"
        assert api_status_badge(True).css_class == "badge badge-green"
        assert api_status_badge(False).text == "API: Offline"
        assert api_status_badge(False).css_class == "badge badge-red"


# =============================================================================
# ENCODER ROWS / DASHBOARD
# =============================================================================

class TestEncoderRow:

    def test_live_row(self):
        row = project_encoder_row(_snap(), _frame(), bytes_per_second=10000)

        assert row.name == "Slot 1"
        assert row.badge.text == "LIVE"
        assert row.card_class == "slot-card live"
        assert row.track_line == "Song — Artist"
        assert row.position_text == "0:12"
        assert row.duration_text == "1:00"
        assert row.progress_pct == pytest.approx(20.833, abs=0.01)
        assert row.byte_rate_text == "9.8 KB/s"
        assert row.uptime_text == "1m 17s"
        assert row.actions == ("stop", "restart")
        assert row.volume_pct == 80

    def test_non_live_progress_is_zero(self):
        snap = _snap(state=EntityState.ERROR, last_error="mount in use")
        row = project_encoder_row(snap, _frame(is_live=False, position=0, fraction=0.0))

        assert row.progress_pct == 0.0
        assert row.position_text == ""
        assert row.actions == ("start",)
        assert row.last_error == "mount in use"
        assert row.uptime_text == "1m 15s"

    def test_connecting_offers_stop(self):
        row = project_encoder_row(_snap(state=EntityState.RECONNECTING), _frame(is_live=False))
        assert row.actions == ("stop", "restart")

    def test_missing_frame_treated_as_not_live(self):
        row = project_encoder_row(_snap(), None)
        assert row.progress_pct == 0.0

    def test_no_track_loaded(self):
        row = project_encoder_row(_snap(track_title=None, track_artist=None), _frame())
        assert row.track_line == "No track loaded"


class TestDashboard:

    def _state(self, reachable=True) -> ReconciledState:
        return ReconciledState(
            api_health=ApiHealthState(reachable=reachable),
            entities={1: _snap(1), 2: _snap(2, state=EntityState.IDLE, listeners=1)},
            colors={1: "#14b8a6", 2: "#0891b2"},
            rates=RateTick(computed_at_ms=0, per_entity={1: 10000.0, 2: 0.0}, total_bytes_per_second=10000.0),
            server_status=ServerStatus(version="1.4.0", uptime="2h 3m"),
        )

    def test_dashboard_totals(self):
        view = project_dashboard(self._state(), {1: _frame(1), 2: _frame(2, is_live=False, position=0, fraction=0.0)})

        assert view.api_badge.text == "API: Online"
        assert [r.entity_id for r in view.rows] == [1, 2]
        assert view.total_rate_text == "9.8 KB/s"
        assert view.live_count == 1
        assert view.total_listeners == 5
        assert view.version_text == "v1.4.0"
        assert view.uptime_text == "Up: 2h 3m"

    def test_offline_keeps_last_known_rows(self):
        view = project_dashboard(self._state(reachable=False), {1: _frame(1)})
        assert view.api_badge.text == "API: Offline"
        assert len(view.rows) == 2

    def test_projection_is_deterministic(self):
        state = self._state()
        frames = {1: _frame(1)}
        assert project_dashboard(state, frames) == project_dashboard(state, frames)


# =============================================================================
# SYSTEM HEALTH / CHARTS / SERVERS
# =============================================================================

class TestSystemAndCharts:

    def test_system_health_gauges(self):
        sample = HealthSample(
            sampled_at=0,
            cpu_pct=12.345,
            mem_pct=40.0,
            mem_used_mb=400,
            mem_total_mb=1000,
            net_in_kbps=2500,
            net_out_kbps=320,
            net_iface="eth0",
            thread_count=9,
            slots=(SlotHealth(slot_id=1, state="reconnecting", bytes_out=2048, out_kbps=128, listeners=3),),
        )
        view = project_system_health(sample)

        assert view.cpu.value_text == "12.3"
        assert view.mem.detail == "400 / 1000 MB"
        assert view.net_in.bar_pct == 100.0
        assert view.net_out.bar_pct == 32.0
        assert view.threads_text == "threads: 9"
        card = view.slot_cards[0]
        assert card.badge.css_class == "badge badge-orange"
        assert card.sent_text == "2.0 KB sent"
        assert card.track_title == "—"

    def test_no_health_yet(self):
        assert project_system_health(None) is None

    def test_bandwidth_chart(self):
        state = ReconciledState(
            api_health=ApiHealthState(reachable=True),
            entities={1: _snap(1)},
            colors={1: "#14b8a6"},
            series={
                BANDWIDTH_TOTAL_KEY: (SeriesPoint("a", 1.0), SeriesPoint("b", 2.0)),
                bandwidth_key(1): (SeriesPoint("a", 1.0), SeriesPoint("b", 2.0)),
            },
        )
        chart = project_bandwidth_chart(state)
        assert chart.labels == ("a", "b")
        assert chart.datasets[0].label == "Slot 1"
        assert chart.datasets[0].data == (1.0, 2.0)

    def test_health_chart(self):
        state = ReconciledState(
            api_health=ApiHealthState(),
            series={
                HEALTH_CPU_KEY: (SeriesPoint("t1", 5.0),),
                HEALTH_MEM_KEY: (SeriesPoint("t1", 50.0),),
            },
        )
        chart = project_health_chart(state)
        assert chart.labels == ("t1",)
        assert [d.label for d in chart.datasets] == ["CPU %", "Mem %"]
        assert chart.datasets[1].data == (50.0,)

    def test_server_rows(self):
        state = ReconciledState(
            api_health=ApiHealthState(reachable=True),
            servers=(MonitoredServer(server_id=7, name="Main", server_type="icecast2",
                                     host="radio.local", port=8000, status="offline"),),
        )
        row = project_servers(state)[0]
        assert row.address == "radio.local:8000"
        assert row.dot_class == "dot offline"
        assert row.uptime_text == "—"
        assert row.polled_label == "—"

    def test_mount_rows(self):
        server = MonitoredServer(
            server_id=7, name="Main", server_type="icecast2", host="radio.local", port=8000,
            status="online",
            mounts=(
                MountStat("/live", codec="MP3", listeners=9, bitrate=128, title="Song", online=True, ours=True),
                MountStat("/alt"),
            ),
        )

        rows = project_mount_rows(server)

        assert rows[0].ours_badge.text == "ours"
        assert rows[0].bitrate_text == "128 kbps"
        assert rows[0].dot_class == "dot online"
        assert rows[1].ours_badge is None
        assert rows[1].codec_text == "—"
        assert rows[1].title_text == "—"
        assert rows[1].status == "offline"
        assert project_server_row(server).mount_count == 2
