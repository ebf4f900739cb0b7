"""Taichi runtime initialization.

Modules that declare Taichi fields (camera, materials, scene, integrator,
tracer) can only be imported after ``init_runtime`` has run.
"""

import logging

import taichi as ti

logger = logging.getLogger(__name__)

_initialized = False


def init_runtime(num_workers: int | None = None, debug: bool = False) -> None:
    """Initialize Taichi on the CPU backend.

    Later calls are ignored: re-initializing Taichi would invalidate every
    field already declared.

    Args:
        num_workers: Number of CPU threads for parallel kernels; Taichi's
            default (all cores) when None.
        debug: Enable Taichi's debug mode (bounds checks in kernels).
    """
    global _initialized

    if _initialized:
        logger.debug("Taichi runtime already initialized")
        return

    options: dict = {"arch": ti.cpu, "debug": debug}
    if num_workers is not None:
        options["cpu_max_num_threads"] = num_workers
    ti.init(**options)
    _initialized = True
    logger.info("Taichi initialized on CPU with %s worker threads", num_workers or "default")


def is_initialized() -> bool:
    return _initialized
