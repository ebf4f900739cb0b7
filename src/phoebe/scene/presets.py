"""Ready-made scenes.

``create_default_scene`` builds the scene the renderer draws when no scene file
is given: two diffuse spheres inside a box of five coloured planes (red left
wall, green right wall), lit only by the background.

``create_lit_room_scene`` adds a ceiling light to the same room. The infinite
walls leave almost no path a way out to the background, so this is the preset
that produces a lit image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from phoebe.scene.presets import create_default_scene
    >>> scene = create_default_scene()
    >>> len(scene)
    7
"""

from dataclasses import dataclass

from phoebe.geometry.bounds import BoundBox
from phoebe.geometry.plane import Plane
from phoebe.geometry.quad import Quad
from phoebe.geometry.sphere import Sphere
from phoebe.materials.emissive import Emissive
from phoebe.materials.lambertian import Lambertian
from phoebe.scene.scene import Scene

DEFAULT_BOUNDS = BoundBox.create((-5.0, -5.0, -5.0), (5.0, 5.0, 5.0))


@dataclass
class RoomParams:
    """Colours of the default room.

    Attributes:
        large_sphere_color: Albedo of the sphere at (0, 0, -10).
        small_sphere_color: Albedo of the sphere at (-2, -2, -7).
        ceiling_color: Albedo of the plane at y = 10.
        back_wall_color: Albedo of the plane at z = -20.
        floor_color: Albedo of the plane at y = -10.
        right_wall_color: Albedo of the plane at x = 10.
        left_wall_color: Albedo of the plane at x = -10.
    """

    large_sphere_color: tuple[float, float, float] = (0.1, 0.3, 0.7)
    small_sphere_color: tuple[float, float, float] = (0.8, 0.4, 0.2)
    ceiling_color: tuple[float, float, float] = (0.9, 0.9, 0.9)
    back_wall_color: tuple[float, float, float] = (0.8, 0.8, 0.8)
    floor_color: tuple[float, float, float] = (0.7, 0.7, 0.7)
    right_wall_color: tuple[float, float, float] = (0.0, 0.7, 0.0)
    left_wall_color: tuple[float, float, float] = (1.0, 0.0, 0.0)


def create_default_scene(bounds: BoundBox | None = None, params: RoomParams | None = None) -> Scene:
    """Build the default room scene.

    Args:
        bounds: Initial scene bounds. Defaults to [-5, 5]^3; the spheres grow
            it as needed.
        params: Optional colour overrides.

    Returns:
        A Scene with 2 spheres followed by 5 planes.
    """
    if params is None:
        params = RoomParams()

    scene = Scene(bounds if bounds is not None else DEFAULT_BOUNDS)

    scene.add_object(Sphere((0.0, 0.0, -10.0), 3.0, Lambertian(params.large_sphere_color)))
    scene.add_object(Sphere((-2.0, -2.0, -7.0), 1.0, Lambertian(params.small_sphere_color)))

    scene.add_object(Plane((0.0, 10.0, -10.0), (0.0, -1.0, 0.0), Lambertian(params.ceiling_color)))
    scene.add_object(Plane((0.0, 0.0, -20.0), (0.0, 0.0, 1.0), Lambertian(params.back_wall_color)))
    scene.add_object(Plane((0.0, -10.0, -10.0), (0.0, 1.0, 0.0), Lambertian(params.floor_color)))
    scene.add_object(Plane((10.0, 0.0, -10.0), (-1.0, 0.0, 0.0), Lambertian(params.right_wall_color)))
    scene.add_object(Plane((-10.0, 0.0, -10.0), (1.0, 0.0, 0.0), Lambertian(params.left_wall_color)))

    return scene


def create_lit_room_scene(
    bounds: BoundBox | None = None,
    params: RoomParams | None = None,
    light_emission: tuple[float, float, float] = (4.0, 4.0, 4.0),
) -> Scene:
    """Build the default room with a square area light just under the ceiling.

    The light faces down (its normal is -y) and is added last.

    Args:
        bounds: Initial scene bounds.
        params: Optional colour overrides.
        light_emission: Radiance of the light.

    Returns:
        A Scene with 2 spheres, 5 planes and 1 quad.
    """
    scene = create_default_scene(bounds, params)
    # edge_u x edge_v = (0, 0, -8) x (8, 0, 0) points along -y
    scene.add_object(
        Quad(
            corner=(-4.0, 9.99, -6.0),
            edge_u=(0.0, 0.0, -8.0),
            edge_v=(8.0, 0.0, 0.0),
            material=Emissive(light_emission),
        )
    )
    return scene
