import pytest

from orrery.core.model import BodyDescriptor, PauseFlag, validate_unique_names
from orrery.core.timekeeping import FrameTimer
from orrery.data.bodies import BODIES, BODY_DEFINITIONS, BODY_DISPLAY_ORDER


@pytest.mark.parametrize(
    "radius, distance",
    [(0.0, 10.0), (-1.0, 10.0), (1.0, 0.0), (1.0, -5.0)],
)
def test_descriptor_rejects_non_positive_sizes(radius, distance):
    with pytest.raises(ValueError):
        BodyDescriptor("Rock", radius, distance, 1.0, "rock.jpg")


def test_descriptor_requires_a_name():
    with pytest.raises(ValueError):
        BodyDescriptor("", 1.0, 10.0, 1.0, "rock.jpg")


def test_descriptor_is_immutable():
    descriptor = BodyDescriptor("Rock", 1.0, 10.0, 1.0, "rock.jpg")
    with pytest.raises(AttributeError):
        descriptor.radius = 2.0  # type: ignore[misc]


def test_registry_matches_the_eight_planets():
    assert BODY_DISPLAY_ORDER == [
        "Mercury",
        "Venus",
        "Earth",
        "Mars",
        "Jupiter",
        "Saturn",
        "Uranus",
        "Neptune",
    ]
    assert set(BODIES) == set(BODY_DISPLAY_ORDER)
    assert BODIES["Earth"].orbit_distance == 20.0
    assert BODIES["Earth"].base_angular_speed == 1.0
    assert BODIES["Jupiter"].radius == 3.5


def test_only_saturn_has_a_ring():
    ringed = [body.name for body in BODY_DEFINITIONS if body.has_ring]
    assert ringed == ["Saturn"]
    assert BODIES["Saturn"].ring_texture_id == "saturn_ring.png"


def test_registry_orbits_are_ordered_outwards():
    distances = [body.orbit_distance for body in BODY_DEFINITIONS]
    assert distances == sorted(distances)


def test_validate_unique_names_flags_duplicates():
    rock = BodyDescriptor("Rock", 1.0, 10.0, 1.0, "rock.jpg")
    validate_unique_names([rock])
    with pytest.raises(ValueError, match="Rock"):
        validate_unique_names([rock, rock])


def test_pause_flag_starts_running():
    assert PauseFlag().paused is False


def test_frame_timer_reports_elapsed_time():
    now = iter([10.0, 10.25, 11.0, 11.0])
    timer = FrameTimer(clock=lambda: next(now))

    assert timer.tick() == pytest.approx(0.25)
    assert timer.tick() == pytest.approx(0.75)
    assert timer.tick() == pytest.approx(0.0)


def test_frame_timer_reset_drops_elapsed_time():
    now = iter([0.0, 5.0, 5.5])
    timer = FrameTimer(clock=lambda: next(now))
    timer.reset()

    assert timer.tick() == pytest.approx(0.5)
