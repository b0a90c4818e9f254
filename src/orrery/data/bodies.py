"""Catalogue of the bodies orbiting the sun."""
from __future__ import annotations

from orrery.core.model import BodyDescriptor, validate_unique_names


BODY_DEFINITIONS: tuple[BodyDescriptor, ...] = (
    BodyDescriptor(
        name="Mercury",
        radius=1.0,
        orbit_distance=10.0,
        base_angular_speed=4.15,
        texture_id="mercury.jpg",
        color=(151, 151, 151),
    ),
    BodyDescriptor(
        name="Venus",
        radius=1.2,
        orbit_distance=15.0,
        base_angular_speed=1.62,
        texture_id="venus.jpg",
        color=(227, 187, 118),
    ),
    BodyDescriptor(
        name="Earth",
        radius=1.3,
        orbit_distance=20.0,
        base_angular_speed=1.00,
        texture_id="earth.jpg",
        color=(60, 110, 190),
    ),
    BodyDescriptor(
        name="Mars",
        radius=1.1,
        orbit_distance=25.0,
        base_angular_speed=0.53,
        texture_id="mars.jpg",
        color=(193, 68, 14),
    ),
    BodyDescriptor(
        name="Jupiter",
        radius=3.5,
        orbit_distance=34.0,
        base_angular_speed=0.084,
        texture_id="jupiter.jpg",
        color=(201, 144, 57),
    ),
    BodyDescriptor(
        name="Saturn",
        radius=3.0,
        orbit_distance=43.0,
        base_angular_speed=0.034,
        texture_id="saturn.jpg",
        ring_texture_id="saturn_ring.png",
        color=(226, 191, 125),
        ring_color=(196, 178, 140),
    ),
    BodyDescriptor(
        name="Uranus",
        radius=2.2,
        orbit_distance=50.0,
        base_angular_speed=0.012,
        texture_id="uranus.jpg",
        color=(147, 205, 217),
    ),
    BodyDescriptor(
        name="Neptune",
        radius=2.1,
        orbit_distance=57.0,
        base_angular_speed=0.006,
        texture_id="neptune.jpg",
        color=(63, 84, 186),
    ),
)

validate_unique_names(BODY_DEFINITIONS)

BODIES: dict[str, BodyDescriptor] = {body.name: body for body in BODY_DEFINITIONS}
BODY_DISPLAY_ORDER: list[str] = [body.name for body in BODY_DEFINITIONS]


__all__ = [
    "BODIES",
    "BODY_DEFINITIONS",
    "BODY_DISPLAY_ORDER",
]
