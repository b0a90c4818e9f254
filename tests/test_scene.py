import math
import random

import numpy as np
import pytest

from orrery.core.animation import orbit_position
from orrery.core.config import SIM_CFG
from orrery.core.model import BodyDescriptor
from orrery.core.scene import (
    RingGeometry,
    Scene,
    SceneNode,
    SphereGeometry,
    compose_body,
    compose_scene,
    compose_starfield,
    euler_xyz_matrix,
    iter_world,
    make_orbit_guide,
)
from orrery.data.bodies import BODY_DEFINITIONS

SATURN = BodyDescriptor(
    name="Saturn",
    radius=3.0,
    orbit_distance=43.0,
    base_angular_speed=0.034,
    texture_id="saturn.jpg",
    ring_texture_id="saturn_ring.png",
)
MARS = BodyDescriptor(
    name="Mars",
    radius=1.1,
    orbit_distance=25.0,
    base_angular_speed=0.53,
    texture_id="mars.jpg",
)


def test_compose_body_builds_pivot_and_offset_mesh(textures, rng):
    scene = Scene()
    body = compose_body(MARS, scene, textures, rng=rng)

    pivot, mesh = body.visual.pivot, body.visual.mesh
    assert scene.roots == [pivot]
    assert np.array_equal(pivot.position, np.zeros(3))
    assert pivot.children == [mesh]
    assert np.allclose(mesh.position, orbit_position(body.current_angle, 25.0))
    assert np.hypot(mesh.position[0], mesh.position[2]) == pytest.approx(25.0)
    assert mesh.geometry == SphereGeometry(1.1)
    assert mesh.material.map.name == "mars.jpg"
    assert mesh.material.lit
    assert body.visual.ring is None
    assert body.speed_factor == 1.0
    assert textures.requested == ["mars.jpg"]


def test_compose_body_adds_dashed_orbit_guide(textures, rng):
    scene = Scene()
    compose_body(MARS, scene, textures, rng=rng)

    (guide,) = scene.orbit_guides
    assert guide.radius == 25.0
    assert guide.points.shape == (SIM_CFG.orbit_guide_segments + 1, 3)
    assert np.all(guide.points[:, 1] == 0.0)
    radii = np.hypot(guide.points[:, 0], guide.points[:, 2])
    assert np.allclose(radii, 25.0)
    assert guide.opacity == pytest.approx(0.45)


def test_orbit_guide_dashes_alternate():
    guide = make_orbit_guide(10.0)
    mask = guide.dash_mask()

    assert mask[0]
    assert mask.any() and (~mask).any()
    assert guide.line_distances[-1] == pytest.approx(2.0 * math.pi * 10.0, rel=1e-3)


def test_initial_angle_is_random_in_full_turn_and_seedable(textures):
    angles = [
        compose_body(MARS, Scene(), textures, rng=random.Random(seed)).current_angle
        for seed in range(50)
    ]
    assert all(0.0 <= angle < 2.0 * math.pi for angle in angles)
    assert len(set(angles)) > 1

    again = compose_body(MARS, Scene(), textures, rng=random.Random(7)).current_angle
    assert again == angles[7]


def test_ring_geometry_and_material(textures, rng):
    body = compose_body(SATURN, Scene(), textures, rng=rng)
    ring = body.visual.ring

    assert ring is not None
    assert body.visual.mesh.children == [ring]
    assert ring.geometry == RingGeometry(
        3.0 * 1.35, 3.0 * 2.15, SIM_CFG.ring_segments, SIM_CFG.ring_radial_bands
    )
    assert ring.material.double_sided
    assert ring.material.opacity == pytest.approx(0.9)
    assert ring.material.alpha_test == pytest.approx(0.5)
    assert ring.material.map.name == "saturn_ring.png"
    assert np.allclose(ring.rotation, [math.pi / 2.0, 0.0, math.radians(15.0)])
    assert not ring.inherit_rotation


def test_ring_follows_body_position_but_not_spin(textures, rng):
    scene = Scene()
    body = compose_body(SATURN, scene, textures, rng=rng)
    mesh = body.visual.mesh
    mesh.position[:] = [0.0, 0.0, 43.0]
    mesh.rotation[1] = 1.3

    worlds = {node.kind: matrix for node, matrix in scene.iter_world()}

    assert np.allclose(worlds["ring"][:3, 3], [0.0, 0.0, 43.0])
    assert np.allclose(worlds["ring"][:3, :3], euler_xyz_matrix(body.visual.ring.rotation))
    assert not np.allclose(worlds["body"][:3, :3], np.eye(3))


def test_bump_map_defaults_scale(textures, rng):
    bumpy = BodyDescriptor("Earth", 1.3, 20.0, 1.0, "earth.jpg", bump_texture_id="earth_bump.jpg")
    body = compose_body(bumpy, Scene(), textures, rng=rng)
    assert body.visual.mesh.material.bump_map.name == "earth_bump.jpg"
    assert body.visual.mesh.material.bump_scale == pytest.approx(0.03)

    custom = BodyDescriptor("Moon", 0.5, 22.0, 1.0, "moon.jpg", bump_texture_id="moon_bump.jpg", bump_scale=0.08)
    body = compose_body(custom, Scene(), textures, rng=rng)
    assert body.visual.mesh.material.bump_scale == pytest.approx(0.08)


def test_nodes_have_a_single_owner():
    parent_a = SceneNode(kind="pivot")
    parent_b = SceneNode(kind="pivot")
    child = SceneNode(kind="body")
    parent_a.add(child)

    with pytest.raises(ValueError):
        parent_b.add(child)
    with pytest.raises(ValueError):
        Scene().add(child)


def test_euler_xyz_matrix_lays_ring_flat():
    flat = euler_xyz_matrix((math.pi / 2.0, 0.0, 0.0))
    assert np.allclose(flat @ np.array([0.0, 1.0, 0.0]), [0.0, 0.0, 1.0])


def test_iter_world_accumulates_translation():
    root = SceneNode(kind="pivot", position=np.array([1.0, 0.0, 0.0]))
    child = root.add(SceneNode(kind="body", position=np.array([0.0, 2.0, 0.0])))

    worlds = dict((id(node), matrix) for node, matrix in iter_world([root]))
    assert np.allclose(worlds[id(child)][:3, 3], [1.0, 2.0, 0.0])


def test_starfield_points_within_extent(rng):
    stars = compose_starfield(500, rng=rng, extent=1000.0)

    assert len(stars) == 500
    assert stars.positions.shape == (500, 3)
    assert np.all(np.abs(stars.positions) <= 1000.0)


def test_starfield_edge_counts(rng):
    assert len(compose_starfield(0, rng=rng)) == 0
    with pytest.raises(ValueError):
        compose_starfield(-1, rng=rng)


def test_compose_scene_follows_registry_order(textures, rng):
    scene, bodies = compose_scene(BODY_DEFINITIONS, textures, rng=rng, star_count=10)

    assert [body.name for body in bodies] == [d.name for d in BODY_DEFINITIONS]
    assert [guide.radius for guide in scene.orbit_guides] == [d.orbit_distance for d in BODY_DEFINITIONS]
    assert scene.sun is not None and not scene.sun.material.lit
    assert scene.sun.geometry == SphereGeometry(5.0)
    assert len(scene.starfield) == 10
    assert [body.name for body in bodies if body.visual.ring is not None] == ["Saturn"]


def test_compose_scene_default_star_count(textures, rng):
    scene, _ = compose_scene(BODY_DEFINITIONS[:1], textures, rng=rng)
    assert len(scene.starfield) == 1200


def test_compose_scene_rejects_duplicate_names(textures, rng):
    with pytest.raises(ValueError):
        compose_scene([MARS, MARS], textures, rng=rng)


def test_composed_bodies_start_on_their_orbit(textures, rng):
    _, bodies = compose_scene(BODY_DEFINITIONS, textures, rng=rng, star_count=0)

    for body in bodies:
        expected = orbit_position(body.current_angle, body.descriptor.orbit_distance)
        assert np.allclose(body.position, expected), body.name
