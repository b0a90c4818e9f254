from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from orrery.core.config import CAMERA_CFG, CameraCfg


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


@dataclass
class CameraState:
    target: np.ndarray
    direction: np.ndarray
    distance: float
    distance_target: float


class PerspectiveCamera:
    """Perspective camera looking at a fixed target, with smoothed dolly zoom."""

    def __init__(
        self,
        size: tuple[int, int],
        *,
        fov_deg: float,
        near: float,
        far: float,
        position: tuple[float, float, float],
        target: tuple[float, float, float] = (0.0, 0.0, 0.0),
        min_distance: float = 1.0,
        max_distance: float = 1e6,
    ) -> None:
        if not 0.0 < fov_deg < 180.0:
            raise ValueError("Field of view must lie in (0, 180) degrees")
        if not 0.0 < near < far:
            raise ValueError("Clip planes must satisfy 0 < near < far")
        self._size = size
        self._fov_deg = fov_deg
        self._near = near
        self._far = far
        self._min_distance = min_distance
        self._max_distance = max_distance
        target_vec = np.array(target, dtype=float)
        offset = np.array(position, dtype=float) - target_vec
        distance = float(np.linalg.norm(offset))
        if distance <= 0.0:
            raise ValueError("Camera position must differ from its target")
        distance = _clamp(distance, min_distance, max_distance)
        self._state = CameraState(
            target=target_vec,
            direction=offset / np.linalg.norm(offset),
            distance=distance,
            distance_target=distance,
        )
        self._version = 0
        self._update_projection()

    @classmethod
    def from_cfg(cls, size: tuple[int, int], cfg: CameraCfg = CAMERA_CFG) -> "PerspectiveCamera":
        return cls(
            size,
            fov_deg=cfg.fov_deg,
            near=cfg.near,
            far=cfg.far,
            position=cfg.position,
            target=cfg.target,
            min_distance=cfg.min_distance,
            max_distance=cfg.max_distance,
        )

    @property
    def size(self) -> tuple[int, int]:
        return self._size

    @property
    def aspect(self) -> float:
        width, height = self._size
        return width / max(height, 1)

    @property
    def near(self) -> float:
        return self._near

    @property
    def far(self) -> float:
        return self._far

    @property
    def focal_length(self) -> float:
        """Distance to the image plane in pixels."""
        return self._focal_length

    @property
    def version(self) -> int:
        """Incremented whenever the projection or the viewpoint changes."""
        return self._version

    @property
    def distance(self) -> float:
        return self._state.distance

    @property
    def distance_target(self) -> float:
        return self._state.distance_target

    @property
    def target(self) -> np.ndarray:
        return self._state.target

    @property
    def position(self) -> np.ndarray:
        return self._state.target + self._state.direction * self._state.distance

    @property
    def basis(self) -> np.ndarray:
        """Rows are the camera's right, up and backward axes in world space."""
        return self._basis

    def on_resize(self, width: int, height: int) -> None:
        self._size = (max(1, int(width)), max(1, int(height)))
        self._update_projection()

    def set_distance_target(self, distance: float) -> None:
        self._state.distance_target = _clamp(distance, self._min_distance, self._max_distance)

    def zoom_by_factor(self, factor: float) -> None:
        self.set_distance_target(self._state.distance_target * factor)

    def update(self, smoothing: float = 0.1) -> None:
        state = self._state
        delta = state.distance_target - state.distance
        if delta == 0.0:
            return
        if abs(delta) < 1e-4:
            state.distance = state.distance_target
        else:
            state.distance += delta * smoothing
        state.distance = _clamp(state.distance, self._min_distance, self._max_distance)
        self._update_projection()

    def _update_projection(self) -> None:
        width, height = self._size
        self._focal_length = (height / 2.0) / math.tan(math.radians(self._fov_deg) / 2.0)

        back = self._state.direction
        world_up = np.array([0.0, 1.0, 0.0])
        right = np.cross(world_up, back)
        if np.linalg.norm(right) < 1e-9:
            right = np.array([1.0, 0.0, 0.0])
        right = right / np.linalg.norm(right)
        up = np.cross(back, right)
        self._basis = np.vstack((right, up, back))
        self._version += 1

    def world_to_view(self, points: np.ndarray) -> np.ndarray:
        """Transform ``(N, 3)`` world points into camera space (looking down -z)."""
        relative = np.atleast_2d(np.asarray(points, dtype=float)) - self.position
        return relative @ self._basis.T

    def project(self, points: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Project world points to the screen.

        Returns ``(screen_xy, depth, visible)``; ``visible`` is ``False`` for
        points outside the near/far range.
        """
        view = self.world_to_view(points)
        depth = -view[:, 2]
        visible = (depth > self._near) & (depth <= self._far)
        safe_depth = np.where(visible, depth, 1.0)
        width, height = self._size
        screen = np.empty((view.shape[0], 2), dtype=float)
        screen[:, 0] = width / 2.0 + view[:, 0] * self._focal_length / safe_depth
        screen[:, 1] = height / 2.0 - view[:, 1] * self._focal_length / safe_depth
        return screen, depth, visible

    def project_point(self, point: np.ndarray) -> tuple[tuple[float, float], float] | None:
        screen, depth, visible = self.project(np.asarray(point, dtype=float).reshape(1, 3))
        if not visible[0]:
            return None
        return (float(screen[0, 0]), float(screen[0, 1])), float(depth[0])

    def projected_radius(self, radius: float, depth: float) -> float:
        if depth <= 0.0:
            return 0.0
        return radius * self._focal_length / depth


__all__ = ["CameraState", "PerspectiveCamera"]
