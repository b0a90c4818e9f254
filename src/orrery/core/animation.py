"""Per-frame orbit updates and pause control."""
from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Callable, Optional, Sequence

import numpy as np

from .config import SIM_CFG, SimulationCfg
from .model import BodyState, PauseFlag

logger = logging.getLogger(__name__)

GLOBAL_SCALE = SIM_CFG.global_speed_scale

BodySnapshot = tuple[str, float, float, float, float, float]


class RunState(Enum):
    RUNNING = "running"
    PAUSED = "paused"


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp *value* between *lo* and *hi*."""

    return max(lo, min(hi, value))


def orbit_position(angle: float, distance: float) -> np.ndarray:
    """Position on a circular orbit of radius ``distance`` in the x-z plane."""

    return np.array([math.cos(angle) * distance, 0.0, math.sin(angle) * distance])


class PauseController:
    """Owns the shared pause flag and notifies listeners on real changes."""

    def __init__(self, flag: Optional[PauseFlag] = None) -> None:
        self._flag = flag if flag is not None else PauseFlag()
        self._listeners: list[Callable[[bool], None]] = []

    @property
    def flag(self) -> PauseFlag:
        return self._flag

    @property
    def paused(self) -> bool:
        return self._flag.paused

    @property
    def state(self) -> RunState:
        return RunState.PAUSED if self._flag.paused else RunState.RUNNING

    def add_listener(self, listener: Callable[[bool], None]) -> None:
        self._listeners.append(listener)

    def pause(self) -> None:
        self._set_paused(True)

    def resume(self) -> None:
        self._set_paused(False)

    def toggle(self) -> None:
        self._set_paused(not self._flag.paused)

    def _set_paused(self, paused: bool) -> None:
        if self._flag.paused == paused:
            return
        self._flag.paused = paused
        logger.info("Animation %s", "paused" if paused else "resumed")
        for listener in list(self._listeners):
            listener(paused)


class AnimationScheduler:
    """Advances every body once per frame unless paused, then renders.

    ``render`` is called on every tick, paused or not, so the frozen scene
    stays on screen.
    """

    def __init__(
        self,
        bodies: Sequence[BodyState],
        pause_flag: PauseFlag,
        render: Optional[Callable[[], None]] = None,
        *,
        cfg: SimulationCfg = SIM_CFG,
    ) -> None:
        self._bodies = list(bodies)
        self._by_name = {body.name: body for body in self._bodies}
        if len(self._by_name) != len(self._bodies):
            raise ValueError("Body names must be unique")
        self._pause_flag = pause_flag
        self._render = render
        self._cfg = cfg

    @property
    def bodies(self) -> tuple[BodyState, ...]:
        return tuple(self._bodies)

    @property
    def state(self) -> RunState:
        return RunState.PAUSED if self._pause_flag.paused else RunState.RUNNING

    def get_body(self, name: str) -> Optional[BodyState]:
        return self._by_name.get(name)

    def tick(self, dt: float) -> None:
        if not self._pause_flag.paused:
            self._advance(max(0.0, dt))
        if self._render is not None:
            self._render()

    def _advance(self, dt: float) -> None:
        scale = self._cfg.global_speed_scale
        spin = self._cfg.spin_per_frame
        for body in self._bodies:
            descriptor = body.descriptor
            body.current_angle += (
                descriptor.base_angular_speed * body.speed_factor * dt * scale
            )
            mesh = body.visual.mesh
            mesh.position[:] = orbit_position(body.current_angle, descriptor.orbit_distance)
            # Per frame, not per second.
            mesh.rotation[1] += spin

    def set_speed_factor(self, name: str, value: float) -> bool:
        """Overwrite one body's speed factor; unknown names are logged and ignored."""

        body = self._by_name.get(name)
        if body is None:
            logger.warning("Ignoring speed change for unknown body %r", name)
            return False
        try:
            factor = float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric speed factor %r for %s", value, name)
            return False
        if not math.isfinite(factor):
            logger.warning("Ignoring non-finite speed factor %r for %s", value, name)
            return False
        body.speed_factor = clamp(
            factor, self._cfg.speed_factor_min, self._cfg.speed_factor_max
        )
        logger.debug("%s speed factor set to %.2f", name, body.speed_factor)
        return True

    def snapshot(self) -> tuple[BodySnapshot, ...]:
        return tuple(
            (
                body.name,
                body.current_angle,
                float(body.position[0]),
                float(body.position[1]),
                float(body.position[2]),
                body.spin,
            )
            for body in self._bodies
        )


__all__ = [
    "AnimationScheduler",
    "BodySnapshot",
    "GLOBAL_SCALE",
    "PauseController",
    "RunState",
    "clamp",
    "orbit_position",
]
