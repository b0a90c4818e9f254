"""Frame timing for the animation loop."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class FrameTimer:
    """Elapsed-time-since-last-frame clock based on :func:`time.perf_counter`.

    The timer is ticked once per frame whether or not the animation is
    paused, so time spent paused is dropped instead of being handed to the
    first frame after resuming.
    """

    clock: Callable[[], float] = time.perf_counter
    last_time: float = field(init=False)

    def __post_init__(self) -> None:
        self.last_time = self.clock()

    def tick(self) -> float:
        now = self.clock()
        dt = now - self.last_time
        self.last_time = now
        return dt

    def reset(self) -> None:
        self.last_time = self.clock()


__all__ = ["FrameTimer"]
