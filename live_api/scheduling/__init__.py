"""Scheduling layer - relojes, loops de polling y loop de frames."""

from .clock import Clock, SystemClock, VirtualClock
from .frame_loop import FrameLoop
from .poll_scheduler import PollScheduler
from .repeating_task import RepeatingTask

__all__ = [
    "Clock",
    "FrameLoop",
    "PollScheduler",
    "RepeatingTask",
    "SystemClock",
    "VirtualClock",
]
