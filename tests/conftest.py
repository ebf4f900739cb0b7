"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Goes through init_runtime so that code under test calling it again (the
    CLI does) keeps the fields declared so far.
    """
    from phoebe.runtime import init_runtime

    init_runtime()
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene and material storage before and after each test."""
    # Import here so Taichi is initialized before fields are declared
    from phoebe.materials.dispatch import clear_materials
    from phoebe.scene.intersection import clear_scene

    clear_scene()
    clear_materials()

    yield

    clear_scene()
    clear_materials()


@pytest.fixture
def default_scene():
    from phoebe.scene.presets import create_default_scene

    return create_default_scene()


@pytest.fixture
def small_config():
    """A fast configuration: 16x16 pixels, few samples."""
    from phoebe.config import RenderConfig

    return RenderConfig(
        num_workers=2,
        file_name="test.png",
        width=16,
        height=16,
        pixel_sample_size=2,
        intersect_sample_size=2,
        trace_depth=2,
    )
