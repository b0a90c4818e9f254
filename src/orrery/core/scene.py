"""Scene graph and composition of the orrery scene.

The scene is an explicit ownership tree: every :class:`SceneNode` owns its
children and may be attached to at most one parent. Bodies are built from the
registry by :func:`compose_body`, which returns the live :class:`BodyState`
the animation scheduler mutates every frame.
"""
from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Protocol, Union

import numpy as np

from .animation import orbit_position
from .config import SIM_CFG, SimulationCfg
from .model import BodyDescriptor, BodyState, validate_unique_names

logger = logging.getLogger(__name__)


@dataclass
class TextureHandle:
    """Placeholder for a surface texture that may still be loading.

    ``image`` is filled in by the asset provider once decoded; until then, or
    if ``failed`` is set, the renderer falls back to the material colour.
    """

    name: str
    image: object | None = None
    failed: bool = False

    @property
    def ready(self) -> bool:
        return self.image is not None and not self.failed


class TextureProvider(Protocol):
    def load_surface_texture(self, name: str) -> TextureHandle:
        ...


@dataclass(frozen=True)
class SphereGeometry:
    radius: float


@dataclass(frozen=True)
class RingGeometry:
    inner_radius: float
    outer_radius: float
    segments: int = 192
    bands: int = 12


Geometry = Union[SphereGeometry, RingGeometry]


@dataclass
class Material:
    color: tuple[int, int, int] = (255, 255, 255)
    map: Optional[TextureHandle] = None
    bump_map: Optional[TextureHandle] = None
    bump_scale: float = 0.0
    lit: bool = True
    double_sided: bool = False
    opacity: float = 1.0
    alpha_test: float = 0.0
    roughness: float = 1.0
    metalness: float = 0.0


def euler_xyz_matrix(rotation: Iterable[float]) -> np.ndarray:
    """Rotation matrix for intrinsic X, then Y, then Z Euler angles."""

    rx, ry, rz = (float(angle) for angle in rotation)
    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)
    cz, sz = math.cos(rz), math.sin(rz)
    rot_x = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    rot_y = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rot_z = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    return rot_x @ rot_y @ rot_z


@dataclass(eq=False)
class SceneNode:
    """Node of the scene tree.

    ``inherit_rotation`` set to ``False`` makes the node follow its parent's
    world position while ignoring the parent's orientation.
    """

    kind: str
    name: str = ""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))
    geometry: Optional[Geometry] = None
    material: Optional[Material] = None
    inherit_rotation: bool = True
    children: list["SceneNode"] = field(default_factory=list)
    attached: bool = field(default=False, repr=False)

    def add(self, child: "SceneNode") -> "SceneNode":
        if child is self:
            raise ValueError("A node cannot be its own child")
        if child.attached:
            raise ValueError(f"Node {child.name or child.kind!r} already has a parent")
        child.attached = True
        self.children.append(child)
        return child

    def local_matrix(self) -> np.ndarray:
        matrix = np.eye(4)
        matrix[:3, :3] = euler_xyz_matrix(self.rotation)
        matrix[:3, 3] = self.position
        return matrix


def iter_world(
    nodes: Iterable[SceneNode],
    parent_matrix: Optional[np.ndarray] = None,
) -> Iterator[tuple[SceneNode, np.ndarray]]:
    """Yield ``(node, world_matrix)`` depth-first, parents before children."""

    if parent_matrix is None:
        parent_matrix = np.eye(4)
    for node in nodes:
        if node.inherit_rotation:
            base = parent_matrix
        else:
            base = np.eye(4)
            base[:3, 3] = parent_matrix[:3, 3]
        world = base @ node.local_matrix()
        yield node, world
        yield from iter_world(node.children, world)


@dataclass
class BodyVisual:
    """Renderable owned by one body: pivot -> mesh -> optional ring."""

    pivot: SceneNode
    mesh: SceneNode
    ring: Optional[SceneNode] = None


def orbit_guide_points(radius: float, segments: int) -> np.ndarray:
    """Evenly spaced closed circle of ``segments + 1`` points in the x-z plane."""

    if segments < 3:
        raise ValueError("An orbit guide needs at least 3 segments")
    angles = np.linspace(0.0, 2.0 * math.pi, segments + 1)
    points = np.zeros((segments + 1, 3), dtype=float)
    points[:, 0] = np.cos(angles) * radius
    points[:, 2] = np.sin(angles) * radius
    return points


@dataclass
class OrbitGuide:
    """Static dashed circle marking a body's path."""

    radius: float
    points: np.ndarray
    dash_size: float
    gap_size: float
    opacity: float
    line_distances: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        steps = np.linalg.norm(np.diff(self.points, axis=0), axis=1)
        self.line_distances = np.concatenate(([0.0], np.cumsum(steps)))

    def dash_mask(self) -> np.ndarray:
        """``True`` for every segment whose start lies inside a dash."""

        period = self.dash_size + self.gap_size
        starts = self.line_distances[:-1]
        return np.mod(starts, period) < self.dash_size


def make_orbit_guide(radius: float, cfg: SimulationCfg = SIM_CFG) -> OrbitGuide:
    return OrbitGuide(
        radius=radius,
        points=orbit_guide_points(radius, cfg.orbit_guide_segments),
        dash_size=cfg.orbit_guide_dash_size,
        gap_size=cfg.orbit_guide_gap_size,
        opacity=cfg.orbit_guide_opacity,
    )


@dataclass
class Starfield:
    positions: np.ndarray

    def __len__(self) -> int:
        return int(self.positions.shape[0])


@dataclass
class Scene:
    """Root container of everything the renderer draws."""

    roots: list[SceneNode] = field(default_factory=list)
    orbit_guides: list[OrbitGuide] = field(default_factory=list)
    starfield: Optional[Starfield] = None
    sun: Optional[SceneNode] = None

    def add(self, node: SceneNode) -> SceneNode:
        if node.attached:
            raise ValueError(f"Node {node.name or node.kind!r} already has a parent")
        node.attached = True
        self.roots.append(node)
        return node

    def iter_world(self) -> Iterator[tuple[SceneNode, np.ndarray]]:
        return iter_world(self.roots)


def compose_starfield(
    count: int,
    *,
    rng: Optional[random.Random] = None,
    extent: float = SIM_CFG.starfield_extent,
) -> Starfield:
    """Scatter ``count`` fixed points uniformly in a cube of half-size ``extent``."""

    if count < 0:
        raise ValueError("Star count must not be negative")
    rng = rng or random.Random()
    coords = [rng.uniform(-extent, extent) for _ in range(count * 3)]
    positions = np.array(coords, dtype=float).reshape(count, 3)
    return Starfield(positions=positions)


def compose_sun(
    scene: Scene,
    textures: TextureProvider,
    *,
    cfg: SimulationCfg = SIM_CFG,
) -> SceneNode:
    sun = SceneNode(
        kind="sun",
        name="Sun",
        geometry=SphereGeometry(cfg.sun_radius),
        material=Material(
            color=(255, 196, 80),
            map=textures.load_surface_texture(cfg.sun_texture),
            lit=False,
        ),
    )
    scene.add(sun)
    scene.sun = sun
    return sun


def compose_body(
    descriptor: BodyDescriptor,
    scene: Scene,
    textures: TextureProvider,
    *,
    rng: Optional[random.Random] = None,
    cfg: SimulationCfg = SIM_CFG,
) -> BodyState:
    """Build guide, pivot, mesh and optional ring for one body."""

    rng = rng or random.Random()
    scene.orbit_guides.append(make_orbit_guide(descriptor.orbit_distance, cfg))

    angle = rng.random() * 2.0 * math.pi
    pivot = scene.add(SceneNode(kind="pivot", name=f"{descriptor.name} pivot"))

    material = Material(
        color=descriptor.color,
        map=textures.load_surface_texture(descriptor.texture_id),
    )
    if descriptor.bump_texture_id is not None:
        material.bump_map = textures.load_surface_texture(descriptor.bump_texture_id)
        material.bump_scale = (
            descriptor.bump_scale
            if descriptor.bump_scale is not None
            else cfg.default_bump_scale
        )

    mesh = pivot.add(
        SceneNode(
            kind="body",
            name=descriptor.name,
            position=orbit_position(angle, descriptor.orbit_distance),
            geometry=SphereGeometry(descriptor.radius),
            material=material,
        )
    )

    ring: Optional[SceneNode] = None
    if descriptor.ring_texture_id is not None:
        ring = mesh.add(
            SceneNode(
                kind="ring",
                name=f"{descriptor.name} ring",
                # Lay the annulus flat, then tilt it about the in-plane axis.
                rotation=np.array(
                    [math.pi / 2.0, 0.0, math.radians(cfg.ring_tilt_deg)], dtype=float
                ),
                geometry=RingGeometry(
                    descriptor.radius * cfg.ring_inner_factor,
                    descriptor.radius * cfg.ring_outer_factor,
                    cfg.ring_segments,
                    cfg.ring_radial_bands,
                ),
                material=Material(
                    color=descriptor.ring_color,
                    map=textures.load_surface_texture(descriptor.ring_texture_id),
                    double_sided=True,
                    opacity=cfg.ring_opacity,
                    alpha_test=cfg.ring_alpha_test,
                ),
                inherit_rotation=False,
            )
        )

    return BodyState(
        descriptor=descriptor,
        visual=BodyVisual(pivot=pivot, mesh=mesh, ring=ring),
        current_angle=angle,
        speed_factor=cfg.speed_factor_default,
    )


def compose_scene(
    registry: Iterable[BodyDescriptor],
    textures: TextureProvider,
    *,
    rng: Optional[random.Random] = None,
    cfg: SimulationCfg = SIM_CFG,
    star_count: Optional[int] = None,
) -> tuple[Scene, list[BodyState]]:
    """Compose the sun, the starfield and one body per registry entry."""

    descriptors = list(registry)
    validate_unique_names(descriptors)
    rng = rng or random.Random()

    scene = Scene()
    compose_sun(scene, textures, cfg=cfg)
    scene.starfield = compose_starfield(
        cfg.starfield_count if star_count is None else star_count,
        rng=rng,
        extent=cfg.starfield_extent,
    )
    bodies = [
        compose_body(descriptor, scene, textures, rng=rng, cfg=cfg)
        for descriptor in descriptors
    ]
    logger.info(
        "Composed scene: %d bodies, %d stars", len(bodies), len(scene.starfield)
    )
    return scene, bodies


__all__ = [
    "BodyVisual",
    "Material",
    "OrbitGuide",
    "RingGeometry",
    "Scene",
    "SceneNode",
    "SphereGeometry",
    "Starfield",
    "TextureHandle",
    "TextureProvider",
    "compose_body",
    "compose_scene",
    "compose_starfield",
    "compose_sun",
    "euler_xyz_matrix",
    "iter_world",
    "make_orbit_guide",
    "orbit_guide_points",
]
