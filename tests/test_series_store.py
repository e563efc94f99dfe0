"""Tests de las series acotadas de los gráficos."""

import pytest

from live_api.series import SeriesPoint, SeriesStore


def _pt(i: int) -> SeriesPoint:
    return SeriesPoint(label=f"t{i}", value=float(i))


class TestSeriesStore:

    def test_series_created_on_first_append(self):
        store = SeriesStore(default_capacity=30)
        assert "bandwidth:1" not in store
        store.append("bandwidth:1", _pt(0))
        assert store.keys() == ["bandwidth:1"]
        assert store.get("bandwidth:1") == [_pt(0)]

    def test_never_exceeds_capacity_and_keeps_most_recent(self):
        store = SeriesStore(default_capacity=30)
        for i in range(100):
            store.append("bandwidth:1", _pt(i))
            assert len(store.get("bandwidth:1")) <= 30
        assert store.values("bandwidth:1") == [float(i) for i in range(70, 100)]
        assert store.labels("bandwidth:1")[0] == "t70"

    def test_per_series_capacity(self):
        store = SeriesStore(default_capacity=30)
        for i in range(80):
            store.append("health:cpu", _pt(i), capacity=60)
            store.append("bandwidth:total", _pt(i))
        assert len(store.get("health:cpu")) == 60
        assert len(store.get("bandwidth:total")) == 30
        assert store.capacity("health:cpu") == 60

    def test_replace_keeps_latest_points(self):
        store = SeriesStore(default_capacity=5)
        store.replace("health:cpu", [_pt(i) for i in range(8)])
        assert store.values("health:cpu") == [3.0, 4.0, 5.0, 6.0, 7.0]

    def test_replace_preserves_existing_capacity(self):
        store = SeriesStore(default_capacity=30)
        store.append("health:mem", _pt(0), capacity=3)
        store.replace("health:mem", [_pt(i) for i in range(10)])
        assert len(store.get("health:mem")) == 3

    def test_get_returns_copy(self):
        store = SeriesStore()
        store.append("k", _pt(1))
        points = store.get("k")
        points.append(_pt(2))
        assert store.get("k") == [_pt(1)]

    def test_missing_key_is_empty(self):
        store = SeriesStore()
        assert store.get("nope") == []
        assert store.last("nope") is None

    def test_discard(self):
        store = SeriesStore()
        store.append("k", _pt(1))
        store.discard("k")
        store.discard("k")
        assert len(store) == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            SeriesStore(default_capacity=0)
