"""Configuration dataclasses for the orrery."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

TEXTURE_DIR_ENV = "ORRERY_TEXTURE_DIR"


@dataclass(frozen=True)
class SimulationCfg:
    global_speed_scale: float = 0.5
    spin_per_frame: float = 0.02
    speed_factor_min: float = 0.0
    speed_factor_max: float = 5.0
    speed_factor_step: float = 0.1
    speed_factor_default: float = 1.0
    starfield_count: int = 1200
    starfield_extent: float = 1000.0
    sun_radius: float = 5.0
    sun_texture: str = "sun.jpg"
    default_bump_scale: float = 0.03
    ring_inner_factor: float = 1.35
    ring_outer_factor: float = 2.15
    ring_tilt_deg: float = 15.0
    ring_opacity: float = 0.9
    ring_alpha_test: float = 0.5
    ring_segments: int = 192
    ring_radial_bands: int = 12
    orbit_guide_segments: int = 480
    orbit_guide_dash_size: float = 1.0
    orbit_guide_gap_size: float = 1.0
    orbit_guide_opacity: float = 0.45


@dataclass(frozen=True)
class CameraCfg:
    fov_deg: float = 50.0
    near: float = 0.1
    far: float = 2000.0
    position: tuple[float, float, float] = (0.0, 80.0, 140.0)
    target: tuple[float, float, float] = (0.0, 0.0, 0.0)
    min_distance: float = 30.0
    max_distance: float = 600.0
    zoom_step: float = 1.1
    zoom_smoothing: float = 0.15


@dataclass(frozen=True)
class RenderCfg:
    width: int = 1280
    height: int = 800
    window_title: str = "Solar System"
    target_fps: int = 60
    texture_dir: Path = Path(__file__).resolve().parents[3] / "textures"
    texture_loads_per_frame: int = 1
    texture_max_size: int = 1024
    background_color: tuple[int, int, int] = (0, 0, 0)
    light_intensity: float = 1.0
    ambient_intensity: float = 0.25
    exposure: float = 1.1
    gamma: float = 2.2
    sphere_max_pixel_radius: int = 400
    fallback_body_color: tuple[int, int, int] = (180, 180, 180)
    orbit_guide_color: tuple[int, int, int] = (136, 136, 136)
    star_color: tuple[int, int, int] = (255, 255, 255)
    star_size: float = 0.7
    hud_text_color: tuple[int, int, int] = (234, 241, 255)
    fps_text_alpha: int = int(255 * 0.6)
    panel_background_color: tuple[int, int, int, int] = (8, 20, 40, int(255 * 0.7))
    panel_margin: int = 16
    panel_padding: int = 14
    panel_width: int = 240
    slider_height: int = 6
    slider_row_height: int = 44
    slider_track_color: tuple[int, int, int, int] = (88, 140, 255, int(255 * 0.55))
    slider_fill_color: tuple[int, int, int] = (118, 180, 255)
    slider_knob_color: tuple[int, int, int] = (234, 241, 255)
    slider_knob_radius: int = 7
    button_height: int = 36
    button_color: tuple[int, int, int, int] = (8, 32, 64, int(255 * 0.78))
    button_hover_color: tuple[int, int, int, int] = (18, 52, 94, int(255 * 0.88))
    button_text_color: tuple[int, int, int] = (234, 241, 255)
    button_border_color: tuple[int, int, int, int] = (88, 140, 255, int(255 * 0.55))
    button_radius: int = 18


SIM_CFG = SimulationCfg()
CAMERA_CFG = CameraCfg()
RENDER_CFG = RenderCfg()


def resolve_texture_dir(override: Optional[str | Path] = None, cfg: RenderCfg = RENDER_CFG) -> Path:
    """Texture directory from ``override``, then $ORRERY_TEXTURE_DIR, then ``cfg``."""

    if override is not None:
        return Path(override)
    from_env = os.environ.get(TEXTURE_DIR_ENV)
    if from_env:
        return Path(from_env)
    return cfg.texture_dir


__all__ = [
    "CAMERA_CFG",
    "RENDER_CFG",
    "SIM_CFG",
    "CameraCfg",
    "RenderCfg",
    "SimulationCfg",
    "TEXTURE_DIR_ENV",
    "resolve_texture_dir",
]
