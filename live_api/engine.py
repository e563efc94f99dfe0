"""Engine de reconciliación: dueño único de todo el estado derivado.

Recibe las respuestas de los loops de polling, las valida y reemplaza el
estado (snapshots, tasas, bases de interpolación, series, salud del API).
Los lectores (frame loop, proyección) solo ven copias inmutables.

Uso:
    engine = ReconciliationEngine(client, settings, clock)
    await engine.poll_entities()
    frames = engine.frame()
    view = project_dashboard(engine.state(), frames)
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from common.config import Settings

from .domain import EntitySnapshot, HealthSample, MonitoredServer, ServerStatus
from .interpolation import InterpolationEngine, ProgressFrame
from .monitoring import ApiHealthMonitor, ApiHealthState
from .projection.formatters import format_clock_label
from .projection.palette import slot_color
from .rates import RateCalculator, RateTick
from .scheduling.clock import Clock, SystemClock
from .series import SeriesPoint, SeriesStore
from .state import (
    BANDWIDTH_TOTAL_KEY,
    HEALTH_CPU_KEY,
    HEALTH_MEM_KEY,
    HEALTH_NET_IN_KEY,
    HEALTH_NET_OUT_KEY,
    ReconciledState,
    bandwidth_key,
)
from .transport import TelemetryClient, TransportResult, Unauthorized
from .transport.schemas import (
    EncoderStatusIn,
    HealthSampleIn,
    MonitoredServerDetailIn,
    MonitoredServersIn,
    ServerStatusIn,
)

logger = logging.getLogger(__name__)

ENCODERS_PATH = "/api/v1/encoders"
HEALTH_PATH = "/api/v1/system/health"
HEALTH_HISTORY_PATH = "/api/v1/system/health/history"
STATUS_PATH = "/api/v1/status"
SERVERS_PATH = "/api/v1/server_monitors/stats"

LOOP_ENTITIES = "entities"
LOOP_HEALTH = "health"
LOOP_HEALTH_HISTORY = "health_history"
LOOP_SERVER_STATUS = "server_status"
LOOP_SERVERS = "servers"

_HEALTH_KEYS = (HEALTH_CPU_KEY, HEALTH_MEM_KEY, HEALTH_NET_IN_KEY, HEALTH_NET_OUT_KEY)


class ReconciliationEngine:
    def __init__(
        self,
        client: TelemetryClient,
        settings: Settings,
        clock: Optional[Clock] = None,
    ):
        self._client = client
        self._settings = settings
        self._clock = clock or SystemClock()

        self._api_health = ApiHealthMonitor()
        self._rates = RateCalculator(
            nominal_interval_s=settings.entities_interval_s,
            capacity=settings.rate_history_size,
        )
        self._interp = InterpolationEngine()
        self._series = SeriesStore(default_capacity=settings.bandwidth_points)

        self._entities: Dict[int, EntitySnapshot] = {}
        self._colors: Dict[int, str] = {}
        self._last_rates: Optional[RateTick] = None
        self._last_entities_at_ms: Optional[float] = None
        self._health: Optional[HealthSample] = None
        self._server_status: Optional[ServerStatus] = None
        self._servers: tuple = ()
        self._auth_required = False

        self._stale_payloads = 0

    # ------------------------------------------------------------------
    # Accesores
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def api_health(self) -> ApiHealthState:
        return self._api_health.state

    @property
    def rates(self) -> RateCalculator:
        return self._rates

    @property
    def series(self) -> SeriesStore:
        return self._series

    @property
    def interpolation(self) -> InterpolationEngine:
        return self._interp

    @property
    def stale_payloads(self) -> int:
        return self._stale_payloads

    def entity(self, entity_id: int) -> Optional[EntitySnapshot]:
        return self._entities.get(entity_id)

    def mark_auth_required(self, required: bool = True) -> None:
        self._auth_required = required

    def poll_operations(self) -> Dict[str, tuple]:
        """loop -> (intervalo nominal, operación de poll) para el scheduler."""
        s = self._settings
        return {
            LOOP_ENTITIES: (s.entities_interval_s, self.poll_entities),
            LOOP_HEALTH: (s.health_interval_s, self.poll_health),
            LOOP_HEALTH_HISTORY: (s.health_history_interval_s, self.poll_health_history),
            LOOP_SERVER_STATUS: (s.status_interval_s, self.poll_server_status),
            LOOP_SERVERS: (s.servers_interval_s, self.poll_monitored_servers),
        }

    def poll_operation(self, name: str) -> Callable[[], Awaitable[bool]]:
        try:
            return self.poll_operations()[name][1]
        except KeyError:
            raise KeyError(f"Unknown poll loop '{name}'") from None

    # ------------------------------------------------------------------
    # Poll operations (una por clase de datos)
    # ------------------------------------------------------------------

    async def poll_entities(self) -> bool:
        result = await self._fetch(LOOP_ENTITIES, ENCODERS_PATH, schema=List[EncoderStatusIn])
        if result is None:
            return False
        observed_at = self._clock.now_ms()
        snapshots = [item.to_snapshot(observed_at) for item in result.data]
        return self.apply_entities(snapshots, observed_at)

    async def poll_health(self) -> bool:
        result = await self._fetch(LOOP_HEALTH, HEALTH_PATH, schema=HealthSampleIn)
        if result is None:
            return False
        return self.apply_health(result.data.to_domain())

    async def poll_health_history(self) -> bool:
        result = await self._fetch(
            LOOP_HEALTH_HISTORY,
            HEALTH_HISTORY_PATH,
            params={"n": self._settings.health_history_samples},
            schema=List[HealthSampleIn],
        )
        if result is None:
            return False
        self.apply_health_history([item.to_domain() for item in result.data])
        return True

    async def poll_server_status(self) -> bool:
        result = await self._fetch(LOOP_SERVER_STATUS, STATUS_PATH, schema=ServerStatusIn)
        if result is None:
            return False
        self.apply_server_status(result.data.to_domain(self._clock.now_ms()))
        return True

    async def poll_monitored_servers(self) -> bool:
        result = await self._fetch(LOOP_SERVERS, SERVERS_PATH, schema=MonitoredServersIn)
        if result is None:
            return False
        self.apply_servers([s.to_domain() for s in result.data.servers])
        return True

    async def fetch_server_detail(self, server_id: int) -> Optional[MonitoredServer]:
        """Un servidor con sus mounts (bajo demanda, fuera de los loops).

        Si el servidor ya está en el listado se reemplaza por la versión
        detallada. None si la petición falló.
        """
        result = await self._fetch(
            "server_detail",
            SERVERS_PATH,
            params={"id": int(server_id)},
            schema=MonitoredServerDetailIn,
        )
        if result is None:
            return None
        server = result.data.server.to_domain()
        self._servers = tuple(server if s.server_id == server.server_id else s for s in self._servers)
        return server

    async def _fetch(
        self,
        loop: str,
        path: str,
        params: Optional[dict] = None,
        schema=None,
    ) -> Optional[TransportResult]:
        """GET + actualización de la salud del API.

        Devuelve None ante cualquier fallo (ya registrado); solo relanza
        Unauthorized para que el scheduler detenga los loops.
        """
        result = await self._client.request("GET", path, params=params, schema=schema)
        if result.ok:
            self._api_health.mark_success(self._clock.now_ms())
            return result

        error = result.error
        kind = getattr(error, "kind", "transport")
        message = getattr(error, "message", None) or str(error)
        self._api_health.mark_failure(message, kind)

        if isinstance(error, Unauthorized):
            self._auth_required = True
            raise error

        logger.warning(
            "[POLL] loop=%s path=%s failed kind=%s status=%s error=%s",
            loop, path, kind, result.status_code, message,
        )
        return None

    # ------------------------------------------------------------------
    # Reconciliación (síncrona, sin I/O)
    # ------------------------------------------------------------------

    def apply_entities(self, snapshots: Sequence[EntitySnapshot], observed_at_ms: float) -> bool:
        """Reemplaza el estado de slots con un listado completo.

        Un listado observado antes que el último aplicado se descarta. Los
        slots ausentes del listado se olvidan (tasas, interpolación, series).
        """
        if self._last_entities_at_ms is not None and observed_at_ms < self._last_entities_at_ms:
            self._stale_payloads += 1
            logger.debug(
                "[POLL] loop=%s stale payload dropped observed_at=%.0f last=%.0f",
                LOOP_ENTITIES, observed_at_ms, self._last_entities_at_ms,
            )
            return False

        tick = self._rates.observe_tick(snapshots, observed_at_ms)

        entities: Dict[int, EntitySnapshot] = {}
        colors: Dict[int, str] = {}
        for idx, snap in enumerate(snapshots):
            color = slot_color(idx)
            self._interp.reseed(snap, color)
            entities[snap.entity_id] = snap
            colors[snap.entity_id] = color

        self._interp.retain(entities.keys())
        for gone in [eid for eid in self._entities if eid not in entities]:
            self._series.discard(bandwidth_key(gone))
            logger.info("[POLL] entity_id=%s no longer reported, state pruned", gone)

        label = format_clock_label(observed_at_ms)
        cap = self._settings.bandwidth_points
        for eid, rate in tick.per_entity.items():
            self._series.append(bandwidth_key(eid), SeriesPoint(label, rate), capacity=cap)
        self._series.append(
            BANDWIDTH_TOTAL_KEY, SeriesPoint(label, tick.total_bytes_per_second), capacity=cap
        )

        self._entities = entities
        self._colors = colors
        self._last_rates = tick
        self._last_entities_at_ms = observed_at_ms
        return True

    def apply_health(self, sample: HealthSample) -> bool:
        """Actualiza el snapshot de salud; añade a las series si avanzó."""
        previous = self._health
        if previous is not None and sample.sampled_at < previous.sampled_at:
            self._stale_payloads += 1
            logger.debug(
                "[POLL] loop=%s stale sample dropped sampled_at=%s last=%s",
                LOOP_HEALTH, sample.sampled_at, previous.sampled_at,
            )
            return False

        self._health = sample
        if previous is not None and sample.sampled_at == previous.sampled_at:
            return True

        for key, point in self._health_points(sample):
            self._series.append(key, point, capacity=self._settings.health_points)
        return True

    def apply_health_history(self, samples: Iterable[HealthSample]) -> None:
        """Re-siembra las series de salud con el historial del backend."""
        ordered = sorted(samples, key=lambda s: s.sampled_at)
        if not ordered:
            return
        by_key: Dict[str, List[SeriesPoint]] = {k: [] for k in _HEALTH_KEYS}
        for sample in ordered:
            for key, point in self._health_points(sample):
                by_key[key].append(point)
        for key, points in by_key.items():
            self._series.replace(key, points, capacity=self._settings.health_points)
        if self._health is None or ordered[-1].sampled_at > self._health.sampled_at:
            self._health = ordered[-1]

    def apply_server_status(self, status: ServerStatus) -> None:
        self._server_status = status

    def apply_servers(self, servers: Iterable[MonitoredServer]) -> None:
        self._servers = tuple(servers)

    @staticmethod
    def _health_points(sample: HealthSample):
        label = format_clock_label(sample.sampled_at * 1000.0)
        return (
            (HEALTH_CPU_KEY, SeriesPoint(label, float(sample.cpu_pct))),
            (HEALTH_MEM_KEY, SeriesPoint(label, float(sample.mem_pct))),
            (HEALTH_NET_IN_KEY, SeriesPoint(label, float(sample.net_in_kbps))),
            (HEALTH_NET_OUT_KEY, SeriesPoint(label, float(sample.net_out_kbps))),
        )

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    def frame(self, now_ms: Optional[float] = None) -> Dict[int, ProgressFrame]:
        """Frame de animación: posiciones interpoladas, sin red."""
        if now_ms is None:
            now_ms = self._clock.now_ms()
        return self._interp.frame(now_ms)

    def state(self) -> ReconciledState:
        return ReconciledState(
            api_health=self._api_health.state,
            entities=dict(self._entities),
            colors=dict(self._colors),
            rates=self._last_rates,
            health=self._health,
            server_status=self._server_status,
            servers=self._servers,
            series={key: tuple(self._series.get(key)) for key in self._series.keys()},
            auth_required=self._auth_required,
        )
