"""Phoebe: an offline Monte Carlo path tracer built on Taichi.

The renderer consumes a configuration and a scene and writes a raster image.
Kernels run on the Taichi CPU backend, parallelized across pixels.

Subpackages:
    core: Errors, constants, vectors, rays, sampling, integrator and tracer
    geometry: Bounding boxes and primitives (sphere, plane, quad)
    materials: Lambertian, metal and emissive materials with kernel dispatch
    scene: Scene aggregate, kernel-side primitive storage and presets
    camera: Pinhole camera with eye/center/up basis
    output: Image buffer sink, tone mapping and PNG export

Modules that declare Taichi fields must be imported after
``phoebe.runtime.init_runtime`` (or ``ti.init``) has been called.
"""

__version__ = "0.1.0"
