"""Data models for the bodies of the orrery."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from .scene import BodyVisual


@dataclass(frozen=True)
class BodyDescriptor:
    """Static catalogue entry for one orbiting body."""

    name: str
    radius: float
    orbit_distance: float
    base_angular_speed: float
    texture_id: str
    ring_texture_id: Optional[str] = None
    bump_texture_id: Optional[str] = None
    bump_scale: Optional[float] = None
    color: tuple[int, int, int] = (180, 180, 180)
    ring_color: tuple[int, int, int] = (210, 190, 150)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Body name must not be empty")
        if self.radius <= 0.0:
            raise ValueError(f"{self.name}: radius must be positive, got {self.radius}")
        if self.orbit_distance <= 0.0:
            raise ValueError(
                f"{self.name}: orbit distance must be positive, got {self.orbit_distance}"
            )

    @property
    def has_ring(self) -> bool:
        return self.ring_texture_id is not None


@dataclass
class BodyState:
    """Live per-body animation state.

    ``visual`` is owned exclusively by this state; the mesh node inside it
    carries the world position and the axial spin.
    """

    descriptor: BodyDescriptor
    visual: BodyVisual
    current_angle: float = 0.0
    speed_factor: float = 1.0

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def position(self) -> np.ndarray:
        return self.visual.mesh.position

    @property
    def spin(self) -> float:
        return float(self.visual.mesh.rotation[1])


@dataclass
class PauseFlag:
    """Shared pause switch read by the scheduler."""

    paused: bool = False


def validate_unique_names(descriptors) -> None:
    """Raise ``ValueError`` if two descriptors share a name."""

    seen: set[str] = set()
    for descriptor in descriptors:
        if descriptor.name in seen:
            raise ValueError(f"Duplicate body name in registry: {descriptor.name!r}")
        seen.add(descriptor.name)


__all__ = ["BodyDescriptor", "BodyState", "PauseFlag", "validate_unique_names"]
