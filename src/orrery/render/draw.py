from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np
import pygame

from orrery.core.config import RENDER_CFG, RenderCfg
from orrery.core.scene import (
    Material,
    OrbitGuide,
    RingGeometry,
    Scene,
    SceneNode,
    SphereGeometry,
    Starfield,
)

from .assets import AssetLibrary
from .camera import PerspectiveCamera

logger = logging.getLogger(__name__)

RGB = tuple[int, int, int]


def srgb_to_linear(values: np.ndarray, gamma: float = RENDER_CFG.gamma) -> np.ndarray:
    return np.power(np.clip(values, 0.0, 1.0), gamma)


def linear_to_srgb(values: np.ndarray, gamma: float = RENDER_CFG.gamma) -> np.ndarray:
    return np.power(np.clip(values, 0.0, 1.0), 1.0 / gamma)


def aces_filmic(values: np.ndarray, exposure: float = 1.0) -> np.ndarray:
    """Narkowicz fit of the ACES filmic tone curve."""

    x = np.asarray(values, dtype=float) * exposure
    return np.clip((x * (2.51 * x + 0.03)) / (x * (2.43 * x + 0.59) + 0.14), 0.0, 1.0)


def encode_colors(linear: np.ndarray, cfg: RenderCfg = RENDER_CFG) -> np.ndarray:
    """Tone-map linear radiance and encode it as 8-bit sRGB."""

    mapped = linear_to_srgb(aces_filmic(linear, cfg.exposure), cfg.gamma)
    return np.rint(mapped * 255.0).astype(np.uint8)


_SPHERE_GRID_CACHE_MAX_BYTES = 64 * 1024 * 1024
_SPHERE_GRID_CACHE: dict[int, tuple[np.ndarray, np.ndarray]] = {}


def sphere_grid_cache_bytes() -> int:
    return sum(mask.nbytes + normals.nbytes for mask, normals in _SPHERE_GRID_CACHE.values())


def sphere_grid(radius_px: int) -> tuple[np.ndarray, np.ndarray]:
    """Coverage mask and view-space unit normals of a sphere sprite.

    Both arrays are indexed ``[x, y]`` like :mod:`pygame.surfarray`.
    """
    if radius_px <= 0:
        raise ValueError("Sphere pixel radius must be positive")
    cached = _SPHERE_GRID_CACHE.pop(radius_px, None)
    if cached is not None:
        _SPHERE_GRID_CACHE[radius_px] = cached
        return cached

    coords = (np.arange(-radius_px, radius_px) + 0.5) / radius_px
    x = coords[:, np.newaxis]
    y = coords[np.newaxis, :]
    rr = x**2 + y**2
    mask = rr < 1.0
    z = np.sqrt(np.maximum(1.0 - rr, 0.0))
    # Screen y grows downwards, view-space y upwards.
    normals = np.dstack(np.broadcast_arrays(x, -y, z))

    _SPHERE_GRID_CACHE[radius_px] = (mask, normals)
    # Evict least recently used grids first, always keeping the one just built.
    while len(_SPHERE_GRID_CACHE) > 1 and sphere_grid_cache_bytes() > _SPHERE_GRID_CACHE_MAX_BYTES:
        _SPHERE_GRID_CACHE.pop(next(iter(_SPHERE_GRID_CACHE)))
    return mask, normals


def sphere_uv(local_normals: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Equirectangular texture coordinates; ``v`` is 0 at the north pole."""

    u = (np.arctan2(local_normals[..., 2], -local_normals[..., 0]) / (2.0 * math.pi)) % 1.0
    v = np.arccos(np.clip(local_normals[..., 1], -1.0, 1.0)) / math.pi
    return u, v


def _sample(texture: np.ndarray, u: np.ndarray, v: np.ndarray) -> np.ndarray:
    width, height = texture.shape[:2]
    tx = np.minimum((u * width).astype(int), width - 1)
    ty = np.minimum((v * height).astype(int), height - 1)
    return texture[tx, ty]


def shade_sphere(
    radius_px: int,
    basis: np.ndarray,
    orientation: np.ndarray,
    *,
    texture: Optional[np.ndarray] = None,
    fallback_color: RGB = RENDER_CFG.fallback_body_color,
    light_dir: Optional[np.ndarray] = None,
    bump: Optional[np.ndarray] = None,
    bump_scale: float = 0.0,
    cfg: RenderCfg = RENDER_CFG,
) -> tuple[np.ndarray, np.ndarray]:
    """Shade a sphere sprite and return ``(rgb, alpha)`` uint8 arrays.

    ``basis`` holds the camera's right/up/back axes as rows, ``orientation`` the
    body's world rotation. ``light_dir`` points from the body towards the
    light; ``None`` renders the surface unlit.
    """
    mask, view_normals = sphere_grid(radius_px)
    world_normals = view_normals @ basis
    local_normals = world_normals @ orientation
    u, v = sphere_uv(local_normals)

    if texture is not None:
        albedo = srgb_to_linear(_sample(texture, u, v) / 255.0, cfg.gamma)
    else:
        base = srgb_to_linear(np.asarray(fallback_color, dtype=float) / 255.0, cfg.gamma)
        albedo = np.broadcast_to(base, mask.shape + (3,))

    if light_dir is None:
        shaded = albedo
    else:
        normals = world_normals
        if bump is not None and bump_scale > 0.0:
            heights = _sample(bump, u, v)
            grad_x, grad_y = np.gradient(heights)
            strength = bump_scale * radius_px
            perturbed = view_normals.copy()
            perturbed[..., 0] -= grad_x * strength
            perturbed[..., 1] += grad_y * strength
            perturbed /= np.linalg.norm(perturbed, axis=2, keepdims=True)
            normals = perturbed @ basis
        lambert = np.maximum(normals @ light_dir, 0.0)
        intensity = cfg.ambient_intensity + cfg.light_intensity * lambert
        shaded = albedo * intensity[..., np.newaxis]

    rgb = encode_colors(shaded, cfg)
    rgb[~mask] = 0
    alpha = np.where(mask, 255, 0).astype(np.uint8)
    return rgb, alpha


def sphere_surface(rgb: np.ndarray, alpha: np.ndarray) -> pygame.Surface:
    surface = pygame.Surface(rgb.shape[:2], pygame.SRCALPHA)
    pygame.surfarray.pixels3d(surface)[...] = rgb
    pygame.surfarray.pixels_alpha(surface)[...] = alpha
    return surface


def draw_sphere(
    surface: pygame.Surface,
    center: tuple[float, float],
    radius_px: float,
    basis: np.ndarray,
    orientation: np.ndarray,
    *,
    texture: Optional[np.ndarray] = None,
    fallback_color: RGB = RENDER_CFG.fallback_body_color,
    light_dir: Optional[np.ndarray] = None,
    bump: Optional[np.ndarray] = None,
    bump_scale: float = 0.0,
    cfg: RenderCfg = RENDER_CFG,
) -> None:
    cx, cy = center
    width, height = surface.get_size()
    if cx + radius_px < 0 or cy + radius_px < 0 or cx - radius_px > width or cy - radius_px > height:
        return
    if radius_px < 1.0:
        pygame.draw.circle(surface, fallback_color, (int(round(cx)), int(round(cy))), 1)
        return
    radius = min(int(round(radius_px)), cfg.sphere_max_pixel_radius)
    rgb, alpha = shade_sphere(
        radius,
        basis,
        orientation,
        texture=texture,
        fallback_color=fallback_color,
        light_dir=light_dir,
        bump=bump,
        bump_scale=bump_scale,
        cfg=cfg,
    )
    sprite = sphere_surface(rgb, alpha)
    surface.blit(sprite, sprite.get_rect(center=(int(round(cx)), int(round(cy)))))


@dataclass
class RingQuad:
    depth: float
    points: list[tuple[float, float]]
    color: tuple[int, int, int, int]


def ring_quads(
    geometry: RingGeometry,
    material: Material,
    world: np.ndarray,
    camera: PerspectiveCamera,
    *,
    texture: Optional[np.ndarray] = None,
    texture_alpha: Optional[np.ndarray] = None,
    light_dir: Optional[np.ndarray] = None,
    cfg: RenderCfg = RENDER_CFG,
) -> list[RingQuad]:
    """Project an annulus into screen-space quads, dropping alpha-tested ones.

    The annulus is cut into ``geometry.bands`` radial bands of
    ``geometry.segments`` cells; every cell samples the texture at its own
    centre and is alpha-tested on its own.
    """
    segments = geometry.segments
    bands = max(1, geometry.bands)
    angles = np.linspace(0.0, 2.0 * math.pi, segments + 1)
    radii = np.linspace(geometry.inner_radius, geometry.outer_radius, bands + 1)
    cos_a, sin_a = np.cos(angles), np.sin(angles)
    local = np.zeros((bands + 1, segments + 1, 3), dtype=float)
    local[..., 0] = radii[:, np.newaxis] * cos_a[np.newaxis, :]
    local[..., 1] = radii[:, np.newaxis] * sin_a[np.newaxis, :]
    rotation = world[:3, :3]
    translation = world[:3, 3]
    corners = local.reshape(-1, 3) @ rotation.T + translation
    screen, depth, visible = camera.project(corners)
    screen = screen.reshape(bands + 1, segments + 1, 2)
    depth = depth.reshape(bands + 1, segments + 1)
    visible = visible.reshape(bands + 1, segments + 1)

    mid_angles = (angles[:-1] + angles[1:]) / 2.0
    mid_radii = (radii[:-1] + radii[1:]) / 2.0
    scaled = mid_radii[:, np.newaxis] / geometry.outer_radius
    # Planar UVs across the ring's bounding square, v flipped to image rows.
    u = (np.cos(mid_angles)[np.newaxis, :] * scaled + 1.0) / 2.0
    v = 1.0 - (np.sin(mid_angles)[np.newaxis, :] * scaled + 1.0) / 2.0

    if texture is not None:
        albedo = srgb_to_linear(_sample(texture, u, v) / 255.0, cfg.gamma)
        if texture_alpha is not None:
            coverage = _sample(texture_alpha, u, v) / 255.0
        else:
            coverage = np.ones(u.shape)
    else:
        base = srgb_to_linear(np.asarray(material.color, dtype=float) / 255.0, cfg.gamma)
        albedo = np.broadcast_to(base, u.shape + (3,))
        coverage = np.ones(u.shape)
    alpha = coverage * material.opacity

    if light_dir is not None:
        facing = float(rotation @ np.array([0.0, 0.0, 1.0]) @ light_dir)
        lambert = abs(facing) if material.double_sided else max(facing, 0.0)
        albedo = albedo * (cfg.ambient_intensity + cfg.light_intensity * lambert)
    rgb = encode_colors(albedo, cfg)

    cell_visible = visible[:-1, :-1] & visible[:-1, 1:] & visible[1:, :-1] & visible[1:, 1:]
    cell_depth = (depth[:-1, :-1] + depth[:-1, 1:] + depth[1:, :-1] + depth[1:, 1:]) / 4.0
    keep = cell_visible & (alpha >= material.alpha_test)

    quads: list[RingQuad] = []
    for band, i in np.argwhere(keep):
        corners_xy = (screen[band, i], screen[band + 1, i], screen[band + 1, i + 1], screen[band, i + 1])
        r, g, b = rgb[band, i]
        quads.append(
            RingQuad(
                depth=float(cell_depth[band, i]),
                points=[(float(x), float(y)) for x, y in corners_xy],
                color=(int(r), int(g), int(b), int(round(alpha[band, i] * 255))),
            )
        )
    return quads


def draw_ring_quads(surface: pygame.Surface, quads: Sequence[RingQuad]) -> None:
    if not quads:
        return
    xs = [x for quad in quads for x, _ in quad.points]
    ys = [y for quad in quads for _, y in quad.points]
    left, top = math.floor(min(xs)), math.floor(min(ys))
    right, bottom = math.ceil(max(xs)), math.ceil(max(ys))
    width, height = surface.get_size()
    if right < 0 or bottom < 0 or left > width or top > height:
        return
    layer = pygame.Surface((right - left + 1, bottom - top + 1), pygame.SRCALPHA)
    for quad in quads:
        pygame.draw.polygon(layer, quad.color, [(x - left, y - top) for x, y in quad.points])
    surface.blit(layer, (left, top))


def render_orbit_guides(
    size: tuple[int, int],
    camera: PerspectiveCamera,
    guides: Sequence[OrbitGuide],
    *,
    cfg: RenderCfg = RENDER_CFG,
) -> pygame.Surface:
    layer = pygame.Surface(size, pygame.SRCALPHA)
    for guide in guides:
        screen, _, visible = camera.project(guide.points)
        color = (*cfg.orbit_guide_color, int(round(255 * guide.opacity)))
        drawable = guide.dash_mask() & visible[:-1] & visible[1:]
        for i in np.flatnonzero(drawable):
            pygame.draw.line(
                layer,
                color,
                (float(screen[i, 0]), float(screen[i, 1])),
                (float(screen[i + 1, 0]), float(screen[i + 1, 1])),
            )
    return layer


def render_starfield(
    size: tuple[int, int],
    camera: PerspectiveCamera,
    starfield: Optional[Starfield],
    *,
    cfg: RenderCfg = RENDER_CFG,
) -> pygame.Surface:
    layer = pygame.Surface(size, pygame.SRCALPHA)
    if starfield is None or len(starfield) == 0:
        return layer
    width, height = size
    screen, depth, visible = camera.project(starfield.positions)
    on_screen = (
        visible
        & (screen[:, 0] >= 0)
        & (screen[:, 0] < width)
        & (screen[:, 1] >= 0)
        & (screen[:, 1] < height)
    )
    # Size attenuation as for perspective point sprites.
    scale = height / 2.0
    for (sx, sy), star_depth in zip(screen[on_screen], depth[on_screen]):
        diameter = cfg.star_size * scale / star_depth
        if diameter < 2.0:
            layer.fill(cfg.star_color, (int(sx), int(sy), 1, 1))
        else:
            pygame.draw.circle(layer, cfg.star_color, (int(sx), int(sy)), int(diameter / 2.0))
    return layer


@dataclass
class DrawItem:
    depth: float
    draw: Callable[[pygame.Surface], None]


class SceneRenderer:
    """Painter's-algorithm renderer for a composed :class:`Scene`.

    The starfield and orbit guides never move, so they are rasterised once
    per camera change and blitted as a backdrop.
    """

    def __init__(
        self,
        scene: Scene,
        camera: PerspectiveCamera,
        assets: AssetLibrary,
        *,
        cfg: RenderCfg = RENDER_CFG,
    ) -> None:
        self._scene = scene
        self._camera = camera
        self._assets = assets
        self._cfg = cfg
        self._backdrop: pygame.Surface | None = None
        self._backdrop_key: tuple[int, tuple[int, int]] | None = None

    @property
    def camera(self) -> PerspectiveCamera:
        return self._camera

    def on_resize(self, width: int, height: int) -> None:
        self._camera.on_resize(width, height)
        self._backdrop = None
        logger.debug("Render surface resized to %dx%d", width, height)

    def render(self, surface: pygame.Surface) -> None:
        size = surface.get_size()
        if size != self._camera.size:
            self.on_resize(*size)
        surface.fill(self._cfg.background_color)
        surface.blit(self._get_backdrop(size), (0, 0))
        items = self.collect_draw_items()
        for item in sorted(items, key=lambda entry: entry.depth, reverse=True):
            item.draw(surface)

    def _get_backdrop(self, size: tuple[int, int]) -> pygame.Surface:
        key = (self._camera.version, size)
        if self._backdrop is None or self._backdrop_key != key:
            backdrop = render_starfield(size, self._camera, self._scene.starfield, cfg=self._cfg)
            backdrop.blit(
                render_orbit_guides(size, self._camera, self._scene.orbit_guides, cfg=self._cfg),
                (0, 0),
            )
            self._backdrop = backdrop
            self._backdrop_key = key
        return self._backdrop

    def collect_draw_items(self) -> list[DrawItem]:
        items: list[DrawItem] = []
        for node, world in self._scene.iter_world():
            if isinstance(node.geometry, SphereGeometry):
                item = self._sphere_item(node, world)
                if item is not None:
                    items.append(item)
            elif isinstance(node.geometry, RingGeometry):
                items.extend(self._ring_items(node, world))
        return items

    @staticmethod
    def _light_direction(center: np.ndarray) -> Optional[np.ndarray]:
        # The only light sits at the origin, inside the sun.
        distance = float(np.linalg.norm(center))
        if distance < 1e-9:
            return None
        return -center / distance

    def _sphere_item(self, node: SceneNode, world: np.ndarray) -> Optional[DrawItem]:
        center = world[:3, 3].copy()
        projected = self._camera.project_point(center)
        if projected is None:
            return None
        screen_pos, depth = projected
        geometry: SphereGeometry = node.geometry  # type: ignore[assignment]
        radius_px = self._camera.projected_radius(geometry.radius, depth)
        material = node.material or Material()
        light_dir = self._light_direction(center) if material.lit else None
        orientation = world[:3, :3].copy()
        basis = self._camera.basis
        assets = self._assets
        cfg = self._cfg

        def draw(surface: pygame.Surface) -> None:
            draw_sphere(
                surface,
                screen_pos,
                radius_px,
                basis,
                orientation,
                texture=assets.texture_rgb(material.map, min_width=int(2.0 * math.pi * radius_px)),
                fallback_color=material.color,
                light_dir=light_dir,
                bump=assets.texture_luminance(material.bump_map),
                bump_scale=material.bump_scale,
                cfg=cfg,
            )

        return DrawItem(depth=depth, draw=draw)

    def _ring_items(self, node: SceneNode, world: np.ndarray) -> list[DrawItem]:
        center = world[:3, 3].copy()
        projected = self._camera.project_point(center)
        if projected is None:
            return []
        _, body_depth = projected
        material = node.material or Material()
        quads = ring_quads(
            node.geometry,  # type: ignore[arg-type]
            material,
            world,
            self._camera,
            texture=self._assets.texture_rgb(material.map),
            texture_alpha=self._assets.texture_alpha(material.map),
            light_dir=self._light_direction(center),
            cfg=self._cfg,
        )
        behind = [quad for quad in quads if quad.depth > body_depth]
        in_front = [quad for quad in quads if quad.depth <= body_depth]
        # Straddle the body so the far half is painted before it and the near half after.
        epsilon = 1e-6 * max(body_depth, 1.0)
        return [
            DrawItem(depth=body_depth + epsilon, draw=lambda surface: draw_ring_quads(surface, behind)),
            DrawItem(depth=body_depth - epsilon, draw=lambda surface: draw_ring_quads(surface, in_front)),
        ]


__all__ = [
    "DrawItem",
    "RingQuad",
    "SceneRenderer",
    "aces_filmic",
    "draw_ring_quads",
    "draw_sphere",
    "encode_colors",
    "linear_to_srgb",
    "render_orbit_guides",
    "render_starfield",
    "ring_quads",
    "shade_sphere",
    "sphere_grid",
    "sphere_grid_cache_bytes",
    "sphere_surface",
    "sphere_uv",
    "srgb_to_linear",
]
