"""Formateadores de texto para la vista (duraciones, tasas, bytes, etiquetas)."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

KB = 1024
MB = 1024 * 1024
GB = 1024 * 1024 * 1024


def format_duration(ms: Optional[float]) -> str:
    """Milisegundos → "m:ss" (ej: 125000 → "2:05")."""
    total_s = int(max(0, ms or 0) // 1000)
    minutes, seconds = divmod(total_s, 60)
    return f"{minutes}:{seconds:02d}"


def format_uptime(seconds: Optional[float]) -> str:
    """Segundos → "1h 2m" / "3m 4s" / "5s"; vacío si no hay uptime."""
    if not seconds:
        return ""
    s = int(seconds)
    h, rem = divmod(s, 3600)
    m, ss = divmod(rem, 60)
    if h > 0:
        return f"{h}h {m}m"
    if m > 0:
        return f"{m}m {ss}s"
    return f"{ss}s"


def format_byte_rate(bytes_per_second: float) -> str:
    b = max(0.0, float(bytes_per_second or 0))
    if b >= MB:
        return f"{b / MB:.1f} MB/s"
    if b >= KB:
        return f"{b / KB:.1f} KB/s"
    return f"{int(round(b))} B/s"


def format_bytes(value: Optional[float]) -> str:
    if not value:
        return "0 B"
    b = float(value)
    if b < KB:
        return f"{int(b)} B"
    if b < MB:
        return f"{b / KB:.1f} KB"
    if b < GB:
        return f"{b / MB:.2f} MB"
    return f"{b / GB:.2f} GB"


def format_clock_label(epoch_ms: float, tz: Optional[tzinfo] = None) -> str:
    """Etiqueta HH:MM:SS para el eje X de los gráficos (hora local por defecto)."""
    return datetime.fromtimestamp(epoch_ms / 1000.0, tz=tz).strftime("%H:%M:%S")


def format_percent(value: Optional[float], digits: int = 1) -> str:
    return f"{float(value or 0):.{digits}f}"
