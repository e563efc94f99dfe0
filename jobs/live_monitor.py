"""Monitor de consola del encoder.

Arranca los loops de polling y redibuja el dashboard en la terminal desde el
loop de frames. Con `--once` hace un poll de cada clase de datos, imprime la
vista y termina.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import List, Optional, TextIO

from common.config import Settings, get_settings
from live_api.projection import DashboardView, SystemHealthView, project_dashboard, project_system_health
from live_api.runtime import LiveRuntime, build_runtime
from live_api.scheduling import Clock
from live_api.transport import TelemetryClient, Unauthorized

logger = logging.getLogger(__name__)

_CLEAR = "\x1b[2J\x1b[H"
_BAR_WIDTH = 20


def _bar(pct: Optional[float]) -> str:
    filled = int(round((pct or 0.0) / 100.0 * _BAR_WIDTH))
    filled = max(0, min(_BAR_WIDTH, filled))
    return "[" + "#" * filled + "-" * (_BAR_WIDTH - filled) + "]"


def render_lines(view: DashboardView, health: Optional[SystemHealthView] = None) -> List[str]:
    """Dashboard como líneas de texto plano."""
    header = f"{view.api_badge.text}  total {view.total_rate_text}  live {view.live_count}"
    if view.version_text:
        header += f"  {view.version_text}"
    if view.uptime_text:
        header += f"  {view.uptime_text}"
    lines = [header]

    if view.auth_required:
        lines.append("Session expired: log in again to resume polling")

    if not view.rows:
        lines.append("No encoder slots reported")
    for row in view.rows:
        time_text = f"{row.position_text} / {row.duration_text}" if row.duration_text else row.position_text
        lines.append(
            f"{row.name:<12} {row.badge.text:<12} {_bar(row.progress_pct)} {time_text:<13} "
            f"{row.byte_rate_text:>11}  {row.uptime_text}"
        )
        lines.append(f"    {row.track_line}")

    if health is not None:
        lines.append(
            f"CPU {health.cpu.value_text}%  MEM {health.mem.value_text}% ({health.mem.detail})  "
            f"IN {health.net_in.value_text} kbps  OUT {health.net_out.value_text} kbps"
        )
    return lines


class ConsoleRenderer:
    def __init__(self, stream: TextIO = sys.stdout, clear: bool = True):
        self._stream = stream
        self._clear = clear
        self.runtime: Optional[LiveRuntime] = None

    def __call__(self, now_ms: float) -> None:
        if self.runtime is None:
            return
        engine = self.runtime.engine
        state = engine.state()
        view = project_dashboard(state, engine.frame(now_ms))
        text = "\n".join(render_lines(view, project_system_health(state.health)))
        if self._clear:
            text = _CLEAR + text
        self._stream.write(text + "\n")
        self._stream.flush()


async def _run_once(runtime: LiveRuntime, renderer: ConsoleRenderer) -> None:
    for name, (_, operation) in runtime.engine.poll_operations().items():
        try:
            await operation()
        except Unauthorized as e:
            logger.error("Session expired while polling loop=%s redirect=%s", name, e.redirect)
            break
    renderer(runtime.clock.now_ms())


async def _run_forever(runtime: LiveRuntime, stop_event: asyncio.Event) -> None:
    await runtime.start()
    try:
        await stop_event.wait()
    finally:
        await runtime.stop()


async def _monitor(
    settings: Settings,
    renderer: ConsoleRenderer,
    once: bool = False,
    client: Optional[TelemetryClient] = None,
    clock: Optional[Clock] = None,
) -> None:
    """Construye el runtime dentro del event loop en curso y lo ejecuta."""
    stop_event = asyncio.Event()

    def _on_unauthorized(exc: Unauthorized) -> None:
        logger.error("Session expired (redirect=%s); stopping monitor", exc.redirect)
        renderer(renderer.runtime.clock.now_ms())
        stop_event.set()

    runtime = build_runtime(
        settings,
        client=client,
        clock=clock,
        render=None if once else renderer,
        on_unauthorized=_on_unauthorized,
    )
    renderer.runtime = runtime

    logger.info("Live monitor started api=%s refresh=%.1fHz", settings.api_base_url, settings.frame_rate_hz)

    if once:
        try:
            await _run_once(runtime, renderer)
        finally:
            if runtime.owns_client:
                await runtime.client.aclose()
    else:
        await _run_forever(runtime, stop_event)


def main() -> None:
    p = argparse.ArgumentParser(description="Monitor de consola del encoder (polling + interpolación)")
    p.add_argument("--api-url", default=None, help="override de LIVE_API_URL")
    p.add_argument("--refresh-hz", type=float, default=2.0, help="frames por segundo en la terminal")
    p.add_argument("--once", action="store_true", help="poll each data class once, print and exit")
    p.add_argument("--no-clear", action="store_true", help="do not clear the screen between frames")
    args = p.parse_args()

    settings = get_settings()
    overrides = {"frame_rate_hz": args.refresh_hz}
    if args.api_url:
        overrides["api_base_url"] = args.api_url.rstrip("/")
    settings = replace(settings, **overrides)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    renderer = ConsoleRenderer(clear=not args.once and not args.no_clear)

    try:
        asyncio.run(_monitor(settings, renderer, once=args.once))
    except KeyboardInterrupt:
        logger.info("Live monitor interrupted")


if __name__ == "__main__":  # pragma: no cover
    main()
