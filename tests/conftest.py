"""Pytest configuration for tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data and tracer settings around each test.

    This ensures tests are isolated from each other.
    """
    # Import here so that fields are declared after ti.init()
    from tinyray.camera.pinhole import PinholeCamera, setup_camera
    from tinyray.core.tracer import DEFAULT_MAX_DEPTH, clear_render_target, set_max_depth
    from tinyray.materials.phong import clear_materials
    from tinyray.scene.environment import reset_background
    from tinyray.scene.intersection import clear_scene
    from tinyray.scene.lights import clear_lights

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_lights()
        reset_background()
        set_max_depth(DEFAULT_MAX_DEPTH)
        setup_camera(PinholeCamera())
        clear_render_target()

    _clear_all()
    yield
    _clear_all()
