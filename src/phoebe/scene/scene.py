"""Scene aggregate: a bounding box plus an ordered collection of geometry.

The ``Scene`` is built on the host with ``add_object`` and mirrored into the
kernel-side storage of ``phoebe.scene.intersection`` on demand. Only one scene
is resident in kernel storage at a time; ``upload`` is skipped when the
resident copy is already current.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from phoebe.geometry import BoundBox, Plane, Sphere
    >>> from phoebe.materials import Lambertian
    >>> scene = Scene(BoundBox.create((-5, -5, -5), (5, 5, 5)))
    >>> scene.add_object(Sphere((0, 0, -10), 3.0, Lambertian((0.1, 0.3, 0.7))))
    0
    >>> hit = scene.intersect(HostRay.create((0, 0, 0), (0, 0, -1)))
    >>> hit.t  # about 7.0
"""

import itertools
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from phoebe.core.constants import BOUND_PADDING
from phoebe.core.errors import ValidationError
from phoebe.core.ray import HostRay
from phoebe.core.vector import Vec3
from phoebe.geometry.base import Geometry
from phoebe.geometry.bounds import BoundBox
from phoebe.geometry.plane import Plane
from phoebe.geometry.quad import Quad
from phoebe.geometry.sphere import Sphere
from phoebe.materials.base import Material
from phoebe.materials.dispatch import clear_materials, material_from_dict, register_material
from phoebe.scene import intersection

logger = logging.getLogger(__name__)

_scene_ids = itertools.count()

# (scene id, scene version, storage generation) of the last completed upload
_resident: tuple[int, int, int] | None = None


@dataclass(frozen=True)
class Intersect:
    """A ray-geometry hit.

    Attributes:
        ray: The ray that produced the hit.
        geometry: The nearest geometry along the ray.
        position: ``ray.at(t)``.
        t: Ray parameter of the hit.
    """

    ray: HostRay
    geometry: Geometry
    position: Vec3
    t: float

    @property
    def normal(self) -> Vec3:
        return self.geometry.normal_at(self.position)


class Scene:
    """Flat collection of geometry with a bounding-box pre-test.

    Attributes:
        bounds: Current bounding box. Grows to enclose every bounded object.
    """

    def __init__(self, bounds: BoundBox | None = None) -> None:
        """Create an empty scene.

        Args:
            bounds: Initial scene extent. Defaults to the unit cube around the
                origin; it is grown as bounded objects are added.
        """
        self._id = next(_scene_ids)
        self._version = 0
        self._objects: list[Geometry] = []
        self._bounds = bounds if bounds is not None else BoundBox.create((-1, -1, -1), (1, 1, 1))

    @property
    def bounds(self) -> BoundBox:
        return self._bounds

    @property
    def objects(self) -> tuple[Geometry, ...]:
        return tuple(self._objects)

    def __len__(self) -> int:
        return len(self._objects)

    def add_object(self, geometry: Geometry) -> int:
        """Append geometry to the scene.

        Bounded geometry that pokes out of the current box grows it (with a
        small padding), so the bounding-box pre-test never rejects a real hit.
        Must not be called while a render is in flight.

        Returns:
            The insertion index of the object.

        Raises:
            ValidationError: If ``geometry`` is not a Geometry.
        """
        if not isinstance(geometry, Geometry):
            raise ValidationError(f"expected Geometry, got {type(geometry).__name__}")

        box = geometry.bounding_box()
        if box is not None and not self._bounds.contains(box):
            grown = self._bounds.union(box.padded(BOUND_PADDING))
            logger.info(
                "scene bounds grown from %s..%s to %s..%s to fit %s",
                self._bounds.min,
                self._bounds.max,
                grown.min,
                grown.max,
                type(geometry).__name__,
            )
            self._bounds = grown

        self._objects.append(geometry)
        self._version += 1
        return len(self._objects) - 1

    def is_resident(self) -> bool:
        return _resident == (self._id, self._version, intersection.get_scene_generation())

    def upload(self) -> None:
        """Write this scene into kernel storage, replacing whatever was there.

        Materials are registered once per distinct value.

        Raises:
            CapacityError: If the scene exceeds kernel storage limits.
        """
        global _resident

        intersection.clear_scene()
        clear_materials()

        material_ids: dict[Material, int] = {}
        for geometry in self._objects:
            material = geometry.material
            if material not in material_ids:
                material_ids[material] = register_material(material)
            material_id = material_ids[material]

            if isinstance(geometry, Sphere):
                intersection.add_sphere(geometry.center, geometry.radius, material_id)
            elif isinstance(geometry, Plane):
                intersection.add_plane(geometry.point, geometry.normal, material_id)
            elif isinstance(geometry, Quad):
                intersection.add_quad(geometry.corner, geometry.edge_u, geometry.edge_v, material_id)
            else:
                raise ValidationError(f"unsupported geometry {type(geometry).__name__}")

        intersection.set_scene_bounds(self._bounds)
        _resident = (self._id, self._version, intersection.get_scene_generation())
        logger.debug(
            "uploaded scene %d: %d objects, %d materials", self._id, len(self._objects), len(material_ids)
        )

    def sync(self) -> None:
        """Upload the scene unless kernel storage already holds this version."""
        if not self.is_resident():
            self.upload()

    def intersect(self, ray: HostRay) -> Intersect | None:
        """Nearest hit along ``ray``, or None.

        Runs the same intersection kernel the renderer uses, including the
        bounding-box pre-test and first-inserted tie-break.
        """
        self.sync()
        result = intersection.query_nearest(ray.origin, ray.direction)
        if result is None:
            return None
        index, t = result
        return Intersect(ray=ray, geometry=self._objects[index], position=ray.at(t), t=t)

    def to_dict(self) -> dict[str, Any]:
        return {
            "bounds": self._bounds.to_dict(),
            "objects": [geometry.to_dict() for geometry in self._objects],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Scene":
        """Rebuild a scene from its ``to_dict`` form.

        Raises:
            ValidationError: On unknown object types or invalid parameters.
        """
        bounds = BoundBox.from_dict(data["bounds"]) if "bounds" in data else None
        objects = data.get("objects", [])
        if not isinstance(objects, list):
            raise ValidationError(f"scene objects must be a list, got {objects!r}")
        scene = cls(bounds)
        for entry in objects:
            scene.add_object(geometry_from_dict(entry))
        return scene


def geometry_from_dict(data: dict[str, Any]) -> Geometry:
    """Build geometry (with its material) from its ``to_dict`` form.

    Raises:
        ValidationError: If the type tag is unknown, a field is missing or a
            value has the wrong type.
    """
    if not isinstance(data, dict):
        raise ValidationError(f"scene object must be a JSON object, got {data!r}")
    params = dict(data)
    kind = params.pop("type", None)
    if "material" not in params:
        raise ValidationError(f"{kind} object has no material")
    params["material"] = material_from_dict(params["material"])

    classes: dict[str, type[Geometry]] = {"sphere": Sphere, "plane": Plane, "quad": Quad}
    cls = classes.get(kind) if isinstance(kind, str) else None
    if cls is None:
        raise ValidationError(f"unknown geometry type {kind!r}; expected one of {sorted(classes)}")
    try:
        return cls(**params)
    except ValidationError:
        raise
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"invalid parameters for {kind}: {exc}") from exc


def load_scene(path: str | Path) -> Scene:
    """Load a scene description from a JSON file.

    Raises:
        OSError: If the file cannot be read.
        ValidationError: If the content is not a valid scene.
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except UnicodeDecodeError as exc:
            raise ValidationError(f"{path}: not UTF-8 text: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ValidationError(f"{path}: invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValidationError(f"{path}: scene must be a JSON object")
    logger.info("loaded scene description from %s", path)
    return Scene.from_dict(data)


def save_scene(scene: Scene, path: str | Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(scene.to_dict(), f, indent=2)
