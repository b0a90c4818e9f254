from __future__ import annotations

import logging
from collections import OrderedDict, deque
from pathlib import Path
from typing import Iterable

import numpy as np
import pygame

from orrery.core.config import RENDER_CFG
from orrery.core.scene import TextureHandle

logger = logging.getLogger(__name__)

Color = tuple[int, int, int] | tuple[int, int, int, int]


class AssetLibrary:
    """Texture provider with deferred loading and cached pixel arrays.

    :meth:`load_surface_texture` only queues the file; :meth:`pump` decodes
    queued textures a few per frame on the render thread. A texture that is
    missing or cannot be decoded is marked failed and never retried.
    """

    def __init__(
        self,
        texture_dir: Path | None = None,
        *,
        max_texture_size: int = RENDER_CFG.texture_max_size,
    ) -> None:
        self._texture_dir = Path(texture_dir) if texture_dir is not None else RENDER_CFG.texture_dir
        self._max_texture_size = max(1, max_texture_size)
        self._handles: dict[str, TextureHandle] = {}
        self._pending: deque[TextureHandle] = deque()
        self._rgb_cache: dict[tuple[str, int], np.ndarray] = {}
        self._alpha_cache: dict[str, np.ndarray] = {}
        self._luminance_cache: dict[str, np.ndarray] = {}

    @property
    def texture_dir(self) -> Path:
        return self._texture_dir

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def load_surface_texture(self, name: str) -> TextureHandle:
        handle = self._handles.get(name)
        if handle is None:
            handle = TextureHandle(name=name)
            self._handles[name] = handle
            self._pending.append(handle)
        return handle

    def pump(self, budget: int = 1) -> int:
        """Decode up to ``budget`` queued textures; return how many were processed."""
        processed = 0
        while self._pending and processed < budget:
            self._load(self._pending.popleft())
            processed += 1
        return processed

    def load_all(self) -> None:
        self.pump(len(self._pending))

    def _load(self, handle: TextureHandle) -> None:
        path = self._texture_dir / handle.name
        try:
            image = pygame.image.load(path.as_posix())
        except (pygame.error, OSError) as exc:
            handle.failed = True
            logger.warning("Texture %s unavailable (%s); using fallback colour", handle.name, exc)
            return
        if pygame.display.get_init() and pygame.display.get_surface() is not None:
            image = image.convert_alpha()
        handle.image = self._limit_size(image)
        logger.debug("Loaded texture %s %s", handle.name, handle.image.get_size())

    def _limit_size(self, image: pygame.Surface) -> pygame.Surface:
        width, height = image.get_size()
        longest = max(width, height)
        if longest <= self._max_texture_size:
            return image
        scale = self._max_texture_size / longest
        return _scale_surface(image, (max(1, int(width * scale)), max(1, int(height * scale))))

    def texture_rgb(self, handle: TextureHandle | None, min_width: int = 0) -> np.ndarray | None:
        """``(W, H, 3)`` uint8 pixels of the smallest mip level at least ``min_width`` wide.

        Sampling a pre-shrunk level keeps far and grazing-angle surfaces from
        sparkling.
        """
        if handle is None or not handle.ready:
            return None
        image: pygame.Surface = handle.image  # type: ignore[assignment]
        width, height = image.get_size()
        level = 0
        while min_width > 0 and (width >> (level + 1)) >= min_width and (height >> (level + 1)) >= 1:
            level += 1
        key = (handle.name, level)
        cached = self._rgb_cache.get(key)
        if cached is not None:
            return cached
        if level == 0:
            pixels = pygame.surfarray.array3d(image)
        else:
            size = (max(1, width >> level), max(1, height >> level))
            pixels = pygame.surfarray.array3d(_scale_surface(image, size))
        self._rgb_cache[key] = pixels
        return pixels

    def texture_alpha(self, handle: TextureHandle | None) -> np.ndarray | None:
        if handle is None or not handle.ready:
            return None
        cached = self._alpha_cache.get(handle.name)
        if cached is None:
            cached = pygame.surfarray.array_alpha(handle.image)
            self._alpha_cache[handle.name] = cached
        return cached

    def texture_luminance(self, handle: TextureHandle | None) -> np.ndarray | None:
        """Height map in ``[0, 1]`` for bump mapping."""
        rgb = self.texture_rgb(handle)
        if rgb is None:
            return None
        cached = self._luminance_cache.get(handle.name)  # type: ignore[union-attr]
        if cached is None:
            cached = rgb.astype(float).mean(axis=2) / 255.0
            self._luminance_cache[handle.name] = cached  # type: ignore[union-attr]
        return cached


def _scale_surface(surface: pygame.Surface, size: tuple[int, int]) -> pygame.Surface:
    try:
        return pygame.transform.smoothscale(surface, size)
    except ValueError:
        # smoothscale only accepts 24/32-bit surfaces.
        return pygame.transform.scale(surface, size)


_TEXT_SURFACE_CACHE_MAX_SIZE = 256
_TEXT_SURFACE_CACHE: OrderedDict[tuple[int, str, Color], pygame.Surface] = OrderedDict()


def get_text_surface(font: pygame.font.Font, text: str, color: Color) -> pygame.Surface:
    """Return a cached rendered surface for the given font, text and color."""

    key = (id(font), text, color)
    cached = _TEXT_SURFACE_CACHE.get(key)
    if cached is not None:
        _TEXT_SURFACE_CACHE.move_to_end(key)
        return cached
    rendered = font.render(text, True, color)
    _TEXT_SURFACE_CACHE[key] = rendered
    if len(_TEXT_SURFACE_CACHE) > _TEXT_SURFACE_CACHE_MAX_SIZE:
        _TEXT_SURFACE_CACHE.popitem(last=False)
    return rendered


def load_font(preferred_names: Iterable[str], size: int, *, bold: bool = False) -> pygame.font.Font:
    names = list(preferred_names)
    for name in names:
        try:
            match = pygame.font.match_font(name, bold=bold)
        except (OSError, ValueError):
            match = None
        if match:
            return pygame.font.Font(match, size)
    fallback = names[0] if names else None
    return pygame.font.SysFont(fallback, size, bold=bold)
