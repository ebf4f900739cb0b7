"""Path tracer render driver.

``PathTracer`` binds a configuration, a scene and a camera, uploads them to
kernel storage and renders an image in bands of rows. Every pixel of the
target ``ImageSink`` is written exactly once through ``set_intensity_at``.

Because every pixel owns its random stream, the result does not depend on the
band size, the band order or the number of worker threads.

Example:
    >>> from phoebe.config import RenderConfig
    >>> from phoebe.runtime import init_runtime
    >>> config = RenderConfig.default()
    >>> init_runtime(config.num_workers)
    >>> from phoebe.core.tracer import PathTracer
    >>> from phoebe.output import ImageBuffer
    >>> from phoebe.scene.presets import create_default_scene
    >>>
    >>> tracer = PathTracer(config, scene=create_default_scene())
    >>> buffer = ImageBuffer(config.width, config.height)
    >>> tracer.render(buffer, callback=lambda done, total: print(f"{done}/{total}"))
"""

import logging
import time
from collections.abc import Callable, Generator
from typing import TYPE_CHECKING

import numpy as np

from phoebe.camera.pinhole import Camera, setup_camera
from phoebe.core import integrator
from phoebe.core.errors import ValidationError
from phoebe.core.ray import HostRay
from phoebe.core.sampling import fold_seed
from phoebe.core.vector import Vec3, as_tuple
from phoebe.output.buffer import ImageSink
from phoebe.scene.scene import Scene

if TYPE_CHECKING:
    from phoebe.config import RenderConfig

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

DEFAULT_ROWS_PER_BATCH = 32


class PathTracer:
    """Renders a scene through a camera according to a render configuration.

    Attributes:
        config: The validated render configuration.
        scene: The scene being rendered. Must not be modified during a render.
        camera: The camera rays are cast from.
    """

    def __init__(
        self,
        config: "RenderConfig",
        scene: Scene | None = None,
        camera: Camera | None = None,
    ) -> None:
        """Initialize the path tracer.

        Args:
            config: Render configuration; validated here.
            scene: Scene to render. Defaults to an empty scene bounded by
                ``config.scene_bound()``.
            camera: Camera to render from. Defaults to ``Camera.from_config``.

        Raises:
            ConfigError: If the configuration is invalid.
            DegenerateCameraError: If the configured camera is degenerate.
        """
        config.validate()
        self.config = config
        self.scene = scene if scene is not None else Scene(config.scene_bound())
        self.camera = camera if camera is not None else Camera.from_config(config)
        self._seed = fold_seed(config.seed)

    def _prepare(self) -> None:
        """Make the kernel-side scene, camera and background match this tracer."""
        self.scene.sync()
        setup_camera(self.camera)
        integrator.set_background(self.config.background)

    def trace_at(self, x: int, y: int) -> Vec3:
        """Value of pixel ``(x, y)`` of a ``config.width`` x ``config.height`` image."""
        color, _ = self.trace_pixel(x, y)
        return color

    def trace_pixel(self, x: int, y: int) -> tuple[Vec3, int]:
        """Like ``trace_at`` but also returns the number of scene queries."""
        config = self.config
        if not (0 <= x < config.width and 0 <= y < config.height):
            raise ValidationError(f"pixel ({x}, {y}) is outside the {config.width}x{config.height} image")
        self._prepare()
        return integrator.trace_pixel(
            x,
            y,
            config.width,
            config.height,
            config.pixel_sample_size,
            config.intersect_sample_size,
            config.trace_depth,
            self._seed,
        )

    def trace_ray(self, ray: HostRay, depth: int = 0) -> tuple[Vec3, int]:
        """Trace a single ray through the scene.

        Args:
            ray: The ray to trace.
            depth: Recursion depth the ray starts at.

        Returns:
            A tuple of (radiance, intersections) where intersections is the
            number of scene queries performed.
        """
        if depth < 0:
            raise ValidationError(f"depth must be non-negative, got {depth}")
        self._prepare()
        return integrator.trace_ray(
            ray.origin,
            ray.direction,
            depth,
            self.config.trace_depth,
            self.config.intersect_sample_size,
            self._seed,
        )

    def render(
        self,
        buffer: ImageSink,
        rows_per_batch: int | None = None,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render every pixel of ``buffer``.

        Args:
            buffer: Output sink; ``set_intensity_at`` is called once per pixel.
            rows_per_batch: Rows rendered per kernel launch.
            callback: Optional callback called after each band with
                (rows_done, total_rows).

        Example:
            >>> def progress(done, total):
            ...     print(f"Progress: {done}/{total} rows")
            >>> tracer.render(buffer, rows_per_batch=64, callback=progress)
        """
        for rows_done, total_rows in self.render_progressive(buffer, rows_per_batch):
            if callback is not None:
                callback(rows_done, total_rows)

    def render_progressive(
        self,
        buffer: ImageSink,
        rows_per_batch: int | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Render ``buffer`` band by band, yielding progress after each band.

        This is a generator-based alternative to render() with callbacks.

        Args:
            buffer: Output sink; ``set_intensity_at`` is called once per pixel.
            rows_per_batch: Rows rendered per kernel launch.

        Yields:
            Tuple of (rows_done, total_rows).
        """
        if rows_per_batch is None:
            rows_per_batch = DEFAULT_ROWS_PER_BATCH
        if rows_per_batch <= 0:
            raise ValidationError(f"rows_per_batch must be positive, got {rows_per_batch}")

        width, height = buffer.dims()
        config = self.config
        self._prepare()

        logger.info(
            "rendering %dx%d, %d pixel samples, %d intersect samples, depth %d",
            width,
            height,
            config.pixel_sample_size,
            config.intersect_sample_size,
            config.trace_depth,
        )
        start = time.perf_counter()

        band = np.empty((min(rows_per_batch, height), width, 3), dtype=np.float32)
        row_start = 0
        while row_start < height:
            rows = min(rows_per_batch, height - row_start)
            out = band[:rows]
            integrator.render_rows(
                out,
                row_start,
                width,
                height,
                config.pixel_sample_size,
                config.intersect_sample_size,
                config.trace_depth,
                self._seed,
            )
            for r in range(rows):
                for x in range(width):
                    buffer.set_intensity_at(x, row_start + r, as_tuple(out[r, x]))
            row_start += rows
            logger.debug("rendered rows %d/%d", row_start, height)
            yield (row_start, height)

        logger.info("render finished in %.2fs", time.perf_counter() - start)

    def __repr__(self) -> str:
        return (
            f"PathTracer(width={self.config.width}, height={self.config.height}, "
            f"objects={len(self.scene)})"
        )
