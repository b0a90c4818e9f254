import pygame
import pytest

from orrery.core.animation import AnimationScheduler, PauseController
from orrery.core.scene import compose_scene
from orrery.data.bodies import BODY_DEFINITIONS
from orrery.render.ui import Button, ButtonVisualStyle, ControlPanel, Slider, format_speed_label


def click(pos, kind=pygame.MOUSEBUTTONDOWN):
    return pygame.event.Event(kind, pos=pos, button=1)


def motion(pos):
    return pygame.event.Event(pygame.MOUSEMOTION, pos=pos, rel=(0, 0), buttons=(1, 0, 0))


@pytest.fixture
def slider_calls():
    return []


@pytest.fixture
def slider(slider_calls):
    return Slider((0, 0, 200, 36), "Earth", slider_calls.append)


def test_speed_label_format():
    assert format_speed_label("Earth", 1.0) == "Earth Speed: 1×"
    assert format_speed_label("Mars", 0.1) == "Mars Speed: 0.1×"
    assert format_speed_label("Venus", 0.0) == "Venus Speed: 0×"


def test_slider_defaults(slider):
    assert slider.value == 1.0
    assert (slider.minimum, slider.maximum) == (0.0, 5.0)
    assert slider.get_text() == "Earth Speed: 1×"


@pytest.mark.parametrize(
    "requested, expected",
    [(1.234, 1.2), (2.26, 2.3), (7.0, 5.0), (-1.0, 0.0), (4.99, 5.0)],
)
def test_slider_snaps_and_clamps(slider, requested, expected):
    slider.set_value(requested)
    assert slider.value == pytest.approx(expected)


def test_slider_reports_only_changes(slider, slider_calls):
    slider.set_value(1.0)
    slider.set_value(1.02)
    assert slider_calls == []

    slider.set_value(3.0)
    slider.set_value(3.0)
    assert slider_calls == [3.0]

    slider.set_value(0.5, notify=False)
    assert slider_calls == [3.0]
    assert slider.value == 0.5


def test_slider_drag_reaches_both_ends(slider, slider_calls):
    track = slider.track_rect

    assert slider.handle_event(click(track.center))
    assert slider.dragging
    assert slider.value == pytest.approx(2.5)

    slider.handle_event(motion((track.right + 500, track.centery)))
    assert slider.value == 5.0
    slider.handle_event(motion((track.left - 500, track.centery)))
    assert slider.value == 0.0

    assert slider.handle_event(click(track.center, pygame.MOUSEBUTTONUP))
    assert not slider.dragging
    assert slider_calls == [pytest.approx(2.5), 5.0, 0.0]


def test_slider_ignores_clicks_elsewhere(slider):
    assert not slider.handle_event(click((500, 500)))
    assert not slider.handle_event(motion((10, 10)))
    assert slider.value == 1.0


def test_slider_rejects_bad_ranges():
    with pytest.raises(ValueError):
        Slider((0, 0, 10, 10), "Bad", print, minimum=1.0, maximum=1.0)
    with pytest.raises(ValueError):
        Slider((0, 0, 10, 10), "Bad", print, step=0.0)


def test_invisible_button_ignores_clicks():
    pressed = []
    button = Button((0, 0, 50, 20), "Go", lambda: pressed.append(True), visible=False)

    assert not button.handle_event(click((10, 10)))
    button.visible = True
    assert button.handle_event(click((10, 10)))
    assert pressed == [True]


@pytest.fixture
def wired(textures, rng):
    _, bodies = compose_scene(BODY_DEFINITIONS, textures, rng=rng, star_count=0)
    controller = PauseController()
    scheduler = AnimationScheduler(bodies, controller.flag)
    panel = ControlPanel(BODY_DEFINITIONS, scheduler.set_speed_factor, controller)
    return panel, scheduler, controller


def test_panel_has_one_slider_per_body(wired):
    panel, _, _ = wired
    assert [slider.label for slider in panel.sliders] == [d.name for d in BODY_DEFINITIONS]
    assert panel.slider_for("Pluto") is None


def test_slider_changes_reach_the_scheduler(wired):
    panel, scheduler, _ = wired

    panel.slider_for("Earth").set_value(2.5)
    track = panel.slider_for("Neptune").track_rect
    panel.handle_event(click((track.left, track.centery)))
    panel.handle_event(click((track.left, track.centery), pygame.MOUSEBUTTONUP))

    assert scheduler.get_body("Earth").speed_factor == 2.5
    assert scheduler.get_body("Neptune").speed_factor == 0.0
    assert scheduler.get_body("Mars").speed_factor == 1.0


def test_buttons_swap_on_click(wired):
    panel, scheduler, controller = wired
    assert panel.active_button is panel.pause_button
    assert not panel.resume_button.visible

    assert panel.handle_event(click(panel.pause_button.rect.center))
    assert controller.paused
    assert scheduler.state.name == "PAUSED"
    assert panel.active_button is panel.resume_button
    assert not panel.pause_button.visible

    assert panel.handle_event(click(panel.resume_button.rect.center))
    assert not controller.paused
    assert panel.active_button is panel.pause_button


def test_buttons_follow_external_pause_changes(wired):
    panel, _, controller = wired

    controller.toggle()
    assert panel.resume_button.visible and not panel.pause_button.visible

    controller.resume()
    assert panel.pause_button.visible and not panel.resume_button.visible


def test_panel_swallows_clicks_on_its_background(wired):
    panel, _, controller = wired

    assert panel.handle_event(click((panel.rect.right - 2, panel.rect.bottom - 2)))
    assert not panel.handle_event(click((panel.rect.right + 50, panel.rect.bottom + 50)))
    assert not controller.paused


def test_panel_draws(wired, font):
    panel, _, _ = wired
    surface = pygame.Surface((400, 600))

    panel.on_resize(400, 600)
    panel.draw(surface, font)

    assert pygame.surfarray.array3d(surface).max() > 0


def test_button_style_from_cfg():
    style = ButtonVisualStyle.from_cfg()
    assert style.border_width == 1
    assert style.base_color != style.hover_color
