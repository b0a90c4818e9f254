"""Rendering helpers for the orrery."""

from .camera import PerspectiveCamera
from .assets import (
    AssetLibrary,
    get_text_surface,
    load_font,
)
from .draw import (
    SceneRenderer,
    draw_ring_quads,
    draw_sphere,
    render_orbit_guides,
    render_starfield,
    ring_quads,
    shade_sphere,
)
from .ui import (
    Button,
    ButtonVisualStyle,
    ControlPanel,
    Slider,
    build_text_panel,
    format_speed_label,
)

__all__ = [
    "AssetLibrary",
    "Button",
    "ButtonVisualStyle",
    "ControlPanel",
    "PerspectiveCamera",
    "SceneRenderer",
    "Slider",
    "build_text_panel",
    "draw_ring_quads",
    "draw_sphere",
    "format_speed_label",
    "get_text_surface",
    "load_font",
    "render_orbit_guides",
    "render_starfield",
    "ring_quads",
    "shade_sphere",
]
