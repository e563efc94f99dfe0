"""Tests de la interpolación de posición entre polls."""

import pytest

from live_api.domain import EntitySnapshot, EntityState
from live_api.interpolation import InterpolationEngine, LiveInterpolationState, project_progress


def _snap(state=EntityState.LIVE, position=10000, duration=60000, observed_at=0.0, uptime=None):
    return EntitySnapshot(
        entity_id=1,
        state=state,
        position_ms=position,
        duration_ms=duration,
        bytes_sent=0,
        listeners=0,
        observed_at_ms=observed_at,
        uptime_sec=uptime,
    )


def _live_state(position=10000, duration=60000, observed_at=0.0, uptime_ms=0):
    return LiveInterpolationState(
        base_position_ms=position,
        base_duration_ms=duration,
        observed_at_ms=observed_at,
        is_interpolatable=True,
        display_color="#14b8a6",
        base_uptime_ms=uptime_ms,
    )


# =============================================================================
# FUNCIÓN PURA
# =============================================================================

class TestProjectProgress:

    def test_advances_by_elapsed_time(self):
        frame = project_progress(1, _live_state(), 2500)
        assert frame.position_ms == 12500
        assert frame.progress_fraction == pytest.approx(12500 / 60000)
        assert frame.progress_pct == pytest.approx(20.833, abs=0.01)

    def test_capped_at_duration(self):
        frame = project_progress(1, _live_state(position=59000), 10000)
        assert frame.position_ms == 60000
        assert frame.progress_fraction == 1.0

    def test_monotonic_between_reseeds(self):
        state = _live_state(position=50000)
        positions = [project_progress(1, state, t).position_ms for t in range(0, 20000, 250)]
        assert positions == sorted(positions)
        assert max(positions) == 60000

    def test_clock_going_backwards_does_not_rewind(self):
        frame = project_progress(1, _live_state(observed_at=5000), 4000)
        assert frame.position_ms == 10000

    def test_not_live_is_exactly_zero(self):
        state = LiveInterpolationState(
            base_position_ms=30000,
            base_duration_ms=60000,
            observed_at_ms=0,
            is_interpolatable=False,
            display_color="#14b8a6",
        )
        frame = project_progress(1, state, 99999)
        assert frame.is_live is False
        assert frame.position_ms == 0
        assert frame.progress_fraction == 0.0

    def test_unknown_duration_exposes_elapsed_only(self):
        frame = project_progress(1, _live_state(position=0, duration=0, uptime_ms=60000), 1500)
        assert frame.progress_fraction is None
        assert frame.progress_pct is None
        assert frame.elapsed_ms == 61500


# =============================================================================
# ENGINE (máquina de estados)
# =============================================================================

class TestInterpolationEngine:

    def test_seed_on_live(self):
        engine = InterpolationEngine()
        engine.reseed(_snap(observed_at=1000), "#14b8a6")
        frame = engine.frame(3500)[1]
        assert frame.position_ms == 12500
        assert frame.color == "#14b8a6"

    def test_live_to_live_reseeds_unconditionally(self):
        engine = InterpolationEngine()
        engine.reseed(_snap(position=10000, observed_at=0), "#14b8a6")
        # El backend reporta una posición menor (seek / track nuevo)
        engine.reseed(_snap(position=2000, observed_at=5000), "#14b8a6")
        assert engine.frame(6000)[1].position_ms == 3000

    def test_live_to_error_snaps_to_zero(self):
        engine = InterpolationEngine()
        engine.reseed(_snap(observed_at=0), "#14b8a6")
        assert engine.frame(2000)[1].position_ms == 12000

        engine.reseed(_snap(state=EntityState.ERROR, observed_at=5000), "#14b8a6")
        frame = engine.frame(5016)[1]
        assert frame.is_live is False
        assert frame.position_ms == 0
        assert frame.progress_fraction == 0.0

    def test_position_clamped_when_seeding(self):
        engine = InterpolationEngine()
        state = engine.reseed(_snap(position=90000, duration=60000), "#14b8a6")
        assert state.base_position_ms == 60000

    def test_retain_prunes_missing_entities(self):
        engine = InterpolationEngine()
        engine.reseed(_snap(), "#14b8a6")
        engine.retain([])
        assert len(engine) == 0
        assert engine.frame(0) == {}

    def test_uptime_seeded_from_snapshot(self):
        engine = InterpolationEngine()
        engine.reseed(_snap(position=None, duration=None, uptime=120, observed_at=0), "#0891b2")
        frame = engine.frame(3000)[1]
        assert frame.progress_fraction is None
        assert frame.elapsed_ms == 123000
