"""
Orrery - animated Solar System
==============================

Window, event handling and the frame loop. Everything drawn comes from the
scene composed out of the body registry; the loop only feeds events to the
control panel and camera and ticks the animation scheduler once per frame.
"""
from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Optional

import pygame
from pygame.locals import DOUBLEBUF, RESIZABLE

from orrery.core.animation import AnimationScheduler, PauseController
from orrery.core.config import CAMERA_CFG, RENDER_CFG, SIM_CFG, resolve_texture_dir
from orrery.core.logging_utils import setup_logging
from orrery.core.scene import compose_scene
from orrery.core.timekeeping import FrameTimer
from orrery.data.bodies import BODY_DEFINITIONS
from orrery.render import (
    AssetLibrary,
    ControlPanel,
    PerspectiveCamera,
    SceneRenderer,
    build_text_panel,
    get_text_surface,
    load_font,
)

logger = logging.getLogger(__name__)

WINDOW_FLAGS = RESIZABLE | DOUBLEBUF
UI_FONT_NAMES = ("consolas", "dejavusansmono", "menlo", "monospace")
HINT_LINES = ("Space: pause / resume", "Mouse wheel: zoom", "Esc: quit")


def _set_display_mode_with_vsync(
    size: tuple[int, int],
    flags: int = 0,
) -> pygame.Surface:
    """Create the display surface with double buffering and vsync when available."""

    flags |= DOUBLEBUF

    try:
        return pygame.display.set_mode(size, flags, vsync=1)
    except TypeError:
        # Older pygame versions may not support the ``vsync`` keyword argument.
        return pygame.display.set_mode(size, flags)
    except pygame.error as err:
        logger.debug("vsync rejected (%s); falling back to plain mode", err)
        return pygame.display.set_mode(size, flags)


def advance_frame(
    scheduler: AnimationScheduler,
    timer: FrameTimer,
    *,
    assets: Optional[AssetLibrary] = None,
    camera: Optional[PerspectiveCamera] = None,
) -> float:
    """Run one frame of updates and return the elapsed time handed to the scheduler."""

    if assets is not None:
        assets.pump(RENDER_CFG.texture_loads_per_frame)
    if camera is not None:
        camera.update(CAMERA_CFG.zoom_smoothing)
    # Tick every frame, paused or not: time spent paused is dropped.
    dt = timer.tick()
    scheduler.tick(dt)
    return dt


def main(
    *,
    seed: Optional[int] = None,
    log_level: int = logging.INFO,
    texture_dir: Optional[str | Path] = None,
) -> None:
    setup_logging(log_level)
    pygame.init()
    pygame.display.set_caption(RENDER_CFG.window_title)

    screen = _set_display_mode_with_vsync((RENDER_CFG.width, RENDER_CFG.height), WINDOW_FLAGS)
    font = load_font(UI_FONT_NAMES, 16)
    font_fps = load_font(UI_FONT_NAMES, 14)

    texture_path = resolve_texture_dir(texture_dir)
    if not texture_path.is_dir():
        logger.warning("Texture directory %s not found; bodies use their flat colours", texture_path)
    assets = AssetLibrary(texture_path)
    scene, bodies = compose_scene(BODY_DEFINITIONS, assets, rng=random.Random(seed), cfg=SIM_CFG)
    camera = PerspectiveCamera.from_cfg(screen.get_size(), CAMERA_CFG)
    renderer = SceneRenderer(scene, camera, assets, cfg=RENDER_CFG)

    pause_controller = PauseController()
    clock = pygame.time.Clock()

    hint_panel = build_text_panel(
        font_fps,
        [(line, RENDER_CFG.hud_text_color) for line in HINT_LINES],
        background_color=RENDER_CFG.panel_background_color,
        padding=(10, 8),
        alpha=RENDER_CFG.fps_text_alpha,
    )

    def render_frame() -> None:
        renderer.render(screen)
        panel.draw(screen, font)
        width, height = screen.get_size()
        screen.blit(hint_panel, (width - hint_panel.get_width() - RENDER_CFG.panel_margin, RENDER_CFG.panel_margin))
        status = "PAUSED" if pause_controller.paused else f"{clock.get_fps():.0f} FPS"
        fps_surf = get_text_surface(font_fps, status, RENDER_CFG.hud_text_color).copy()
        fps_surf.set_alpha(RENDER_CFG.fps_text_alpha)
        screen.blit(fps_surf, (width - fps_surf.get_width() - RENDER_CFG.panel_margin, height - fps_surf.get_height() - 10))

    scheduler = AnimationScheduler(bodies, pause_controller.flag, render_frame, cfg=SIM_CFG)
    panel = ControlPanel(BODY_DEFINITIONS, scheduler.set_speed_factor, pause_controller)
    panel.on_resize(*screen.get_size())

    timer = FrameTimer()
    running = True
    logger.info("Starting frame loop (%d bodies)", len(bodies))
    try:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_SPACE:
                    pause_controller.toggle()
                elif event.type == pygame.VIDEORESIZE:
                    screen = _set_display_mode_with_vsync(event.size, WINDOW_FLAGS)
                    renderer.on_resize(*screen.get_size())
                    panel.on_resize(*screen.get_size())
                elif panel.handle_event(event):
                    continue
                elif event.type == pygame.MOUSEWHEEL and event.y != 0:
                    camera.zoom_by_factor(CAMERA_CFG.zoom_step ** -event.y)

            advance_frame(scheduler, timer, assets=assets, camera=camera)

            pygame.display.flip()
            clock.tick(RENDER_CFG.target_fps)
    finally:
        logger.info("Shutting down")
        pygame.quit()


__all__ = ["advance_frame", "main"]
