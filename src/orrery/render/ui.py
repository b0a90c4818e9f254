from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

import pygame

from orrery.core.animation import PauseController
from orrery.core.config import RENDER_CFG, SIM_CFG, RenderCfg, SimulationCfg
from orrery.core.model import BodyDescriptor

from .assets import Color, get_text_surface

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ButtonVisualStyle:
    base_color: Color
    hover_color: Color
    text_color: tuple[int, int, int]
    radius: int
    border_color: Color | None = None
    border_width: int = 0

    @classmethod
    def from_cfg(cls, cfg: RenderCfg = RENDER_CFG) -> "ButtonVisualStyle":
        return cls(
            base_color=cfg.button_color,
            hover_color=cfg.button_hover_color,
            text_color=cfg.button_text_color,
            radius=cfg.button_radius,
            border_color=cfg.button_border_color,
            border_width=1,
        )


class Button:
    """Simple rectangular button with hover feedback and callbacks."""

    def __init__(
        self,
        rect: tuple[int, int, int, int],
        text: str,
        callback: Callable[[], None],
        text_getter: Callable[[], str] | None = None,
        *,
        style: ButtonVisualStyle | None = None,
        visible: bool = True,
    ) -> None:
        self.rect = pygame.Rect(rect)
        self.visible = visible
        self._text = text
        self._callback = callback
        self._text_getter = text_getter
        self._style = style

    def get_text(self) -> str:
        if self._text_getter is not None:
            return self._text_getter()
        return self._text

    def draw(
        self,
        surface: pygame.Surface,
        font: pygame.font.Font,
        mouse_pos: tuple[int, int] | None = None,
        *,
        style: ButtonVisualStyle | None = None,
    ) -> None:
        if not self.visible:
            return
        if mouse_pos is None:
            mouse_pos = pygame.mouse.get_pos()
        hovered = self.rect.collidepoint(mouse_pos)
        effective_style = style or self._style
        if effective_style is None:
            raise ValueError("Button style must be provided")
        color = effective_style.hover_color if hovered else effective_style.base_color
        button_surface = pygame.Surface(self.rect.size, pygame.SRCALPHA)
        pygame.draw.rect(
            button_surface,
            color,
            button_surface.get_rect(),
            border_radius=effective_style.radius,
        )
        if effective_style.border_color is not None and effective_style.border_width > 0:
            pygame.draw.rect(
                button_surface,
                effective_style.border_color,
                button_surface.get_rect(),
                effective_style.border_width,
                border_radius=effective_style.radius,
            )
        surface.blit(button_surface, self.rect.topleft)
        text_surf = get_text_surface(font, self.get_text(), effective_style.text_color)
        surface.blit(text_surf, text_surf.get_rect(center=self.rect.center))

    def handle_event(self, event: pygame.event.Event) -> bool:
        if not self.visible:
            return False
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                self._callback()
                return True
        return False


def format_speed_label(name: str, value: float) -> str:
    return f"{name} Speed: {value:g}×"


class Slider:
    """Horizontal slider over ``[minimum, maximum]`` snapped to ``step``."""

    def __init__(
        self,
        rect: tuple[int, int, int, int],
        label: str,
        on_change: Callable[[float], object],
        *,
        minimum: float = SIM_CFG.speed_factor_min,
        maximum: float = SIM_CFG.speed_factor_max,
        step: float = SIM_CFG.speed_factor_step,
        value: float = SIM_CFG.speed_factor_default,
        cfg: RenderCfg = RENDER_CFG,
    ) -> None:
        if maximum <= minimum:
            raise ValueError("Slider maximum must exceed its minimum")
        if step <= 0.0:
            raise ValueError("Slider step must be positive")
        self.rect = pygame.Rect(rect)
        self.label = label
        self._on_change = on_change
        self._minimum = minimum
        self._maximum = maximum
        self._step = step
        self._cfg = cfg
        self._value = self._quantize(value)
        self._dragging = False

    @property
    def value(self) -> float:
        return self._value

    @property
    def minimum(self) -> float:
        return self._minimum

    @property
    def maximum(self) -> float:
        return self._maximum

    @property
    def dragging(self) -> bool:
        return self._dragging

    @property
    def track_rect(self) -> pygame.Rect:
        knob = self._cfg.slider_knob_radius
        track_height = self._cfg.slider_height
        top = self.rect.bottom - knob - track_height // 2
        return pygame.Rect(
            self.rect.left + knob,
            top,
            max(1, self.rect.width - 2 * knob),
            track_height,
        )

    def get_text(self) -> str:
        return format_speed_label(self.label, self._value)

    def _quantize(self, value: float) -> float:
        clamped = max(self._minimum, min(self._maximum, value))
        steps = round((clamped - self._minimum) / self._step)
        return round(min(self._maximum, self._minimum + steps * self._step), 6)

    def set_value(self, value: float, *, notify: bool = True) -> None:
        quantized = self._quantize(value)
        if quantized == self._value:
            return
        self._value = quantized
        if notify:
            self._on_change(quantized)

    def value_at(self, x: float) -> float:
        track = self.track_rect
        ratio = (x - track.left) / track.width
        ratio = max(0.0, min(1.0, ratio))
        return self._minimum + ratio * (self._maximum - self._minimum)

    def knob_x(self) -> int:
        track = self.track_rect
        ratio = (self._value - self._minimum) / (self._maximum - self._minimum)
        return int(round(track.left + ratio * track.width))

    def handle_event(self, event: pygame.event.Event) -> bool:
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            hit_rect = self.track_rect.inflate(0, self._cfg.slider_knob_radius * 2 + 4)
            if hit_rect.collidepoint(event.pos):
                self._dragging = True
                self.set_value(self.value_at(event.pos[0]))
                return True
        elif event.type == pygame.MOUSEMOTION and self._dragging:
            self.set_value(self.value_at(event.pos[0]))
            return True
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1 and self._dragging:
            self._dragging = False
            return True
        return False

    def draw(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        cfg = self._cfg
        label_surf = get_text_surface(font, self.get_text(), cfg.hud_text_color)
        surface.blit(label_surf, (self.rect.left, self.rect.top))
        track = self.track_rect
        track_layer = pygame.Surface(track.size, pygame.SRCALPHA)
        pygame.draw.rect(track_layer, cfg.slider_track_color, track_layer.get_rect(), border_radius=track.height // 2)
        surface.blit(track_layer, track.topleft)
        knob_x = self.knob_x()
        filled = pygame.Rect(track.left, track.top, max(0, knob_x - track.left), track.height)
        if filled.width > 0:
            pygame.draw.rect(surface, cfg.slider_fill_color, filled, border_radius=track.height // 2)
        pygame.draw.circle(surface, cfg.slider_knob_color, (knob_x, track.centery), cfg.slider_knob_radius)


class ControlPanel:
    """Speed sliders for every body plus the pause/resume pair.

    Each slider writes through ``on_speed_change(name, value)``; exactly one
    of the two buttons is visible, following the pause controller.
    """

    def __init__(
        self,
        descriptors: Iterable[BodyDescriptor],
        on_speed_change: Callable[[str, float], object],
        pause_controller: PauseController,
        *,
        render_cfg: RenderCfg = RENDER_CFG,
        sim_cfg: SimulationCfg = SIM_CFG,
    ) -> None:
        self._cfg = render_cfg
        self._pause_controller = pause_controller
        style = ButtonVisualStyle.from_cfg(render_cfg)
        self.pause_button = Button((0, 0, 1, 1), "Pause", pause_controller.pause, style=style)
        self.resume_button = Button((0, 0, 1, 1), "Resume", pause_controller.resume, style=style)
        self.sliders: list[Slider] = []
        for descriptor in descriptors:
            self.sliders.append(
                Slider(
                    (0, 0, 1, 1),
                    descriptor.name,
                    self._bind_speed(descriptor.name, on_speed_change),
                    minimum=sim_cfg.speed_factor_min,
                    maximum=sim_cfg.speed_factor_max,
                    step=sim_cfg.speed_factor_step,
                    value=sim_cfg.speed_factor_default,
                    cfg=render_cfg,
                )
            )
        pause_controller.add_listener(self._sync_buttons)
        self._sync_buttons(pause_controller.paused)
        self.rect = pygame.Rect(0, 0, 1, 1)
        self.layout()

    @staticmethod
    def _bind_speed(
        name: str, on_speed_change: Callable[[str, float], object]
    ) -> Callable[[float], object]:
        def apply(value: float) -> object:
            return on_speed_change(name, value)

        return apply

    def _sync_buttons(self, paused: bool) -> None:
        self.pause_button.visible = not paused
        self.resume_button.visible = paused

    @property
    def active_button(self) -> Button:
        return self.resume_button if self.resume_button.visible else self.pause_button

    def slider_for(self, name: str) -> Slider | None:
        for slider in self.sliders:
            if slider.label == name:
                return slider
        return None

    def layout(self) -> None:
        cfg = self._cfg
        left = cfg.panel_margin + cfg.panel_padding
        top = cfg.panel_margin + cfg.panel_padding
        inner_width = cfg.panel_width - 2 * cfg.panel_padding
        button_rect = (left, top, inner_width, cfg.button_height)
        self.pause_button.rect = pygame.Rect(button_rect)
        self.resume_button.rect = pygame.Rect(button_rect)
        y = top + cfg.button_height + cfg.panel_padding
        for slider in self.sliders:
            slider.rect = pygame.Rect(left, y, inner_width, cfg.slider_row_height - 8)
            y += cfg.slider_row_height
        self.rect = pygame.Rect(
            cfg.panel_margin,
            cfg.panel_margin,
            cfg.panel_width,
            y - cfg.panel_margin + cfg.panel_padding,
        )

    def on_resize(self, width: int, height: int) -> None:
        self.layout()
        if self.rect.bottom > height:
            logger.debug("Control panel (%dpx) taller than window (%dpx)", self.rect.height, height)

    def handle_event(self, event: pygame.event.Event) -> bool:
        # Snapshot the active button: a click may flip which one is visible.
        if self.active_button.handle_event(event):
            return True
        for slider in self.sliders:
            if slider.handle_event(event):
                return True
        if event.type in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEWHEEL):
            pos = getattr(event, "pos", None) or pygame.mouse.get_pos()
            return self.rect.collidepoint(pos)
        return False

    def draw(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        panel = pygame.Surface(self.rect.size, pygame.SRCALPHA)
        pygame.draw.rect(panel, self._cfg.panel_background_color, panel.get_rect(), border_radius=12)
        surface.blit(panel, self.rect.topleft)
        self.active_button.draw(surface, font)
        for slider in self.sliders:
            slider.draw(surface, font)


def build_text_panel(
    font: pygame.font.Font,
    lines: Sequence[tuple[str, tuple[int, int, int]]],
    *,
    background_color: Color,
    padding: tuple[int, int] = (14, 14),
    alpha: int | None = None,
) -> pygame.Surface:
    if not lines:
        raise ValueError("lines must not be empty")
    padding_x, padding_y = padding
    line_height = font.get_linesize()
    width = max(font.size(text)[0] for text, _ in lines) + padding_x * 2
    height = line_height * len(lines) + padding_y * 2
    panel_surface = pygame.Surface((width, height), pygame.SRCALPHA)
    pygame.draw.rect(
        panel_surface,
        background_color,
        panel_surface.get_rect(),
        border_radius=12,
    )
    for idx, (text, color) in enumerate(lines):
        if not text:
            continue
        text_surf = get_text_surface(font, text, color)
        panel_surface.blit(text_surf, (padding_x, padding_y + idx * line_height))
    if alpha is not None and alpha < 255:
        panel_surface.set_alpha(alpha)
    return panel_surface
