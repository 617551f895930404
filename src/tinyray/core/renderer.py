"""Row-band renderer driving the tracer over a whole image.

This module provides a convenient wrapper around the core tracer that
supports:
- A RenderConfig describing image size, field of view and recursion depth
- Rendering in bands of rows, with a progress callback after each band
- Generator-based rendering for interactive use

Every pixel is written exactly once per render. Bands never overlap, and
within a band Taichi traces the pixels in parallel; nothing but the
framebuffer is written while tracing.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tinyray.core.renderer import RenderConfig, Renderer
    >>> from tinyray.scene.tutorial import create_tutorial_scene
    >>>
    >>> renderer = Renderer(RenderConfig(width=320, height=240))
    >>> renderer.load_scene(create_tutorial_scene())
    >>> renderer.render()
    >>> image = renderer.get_image_numpy()
"""

import logging
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from tinyray.camera.pinhole import PinholeCamera, setup_camera
from tinyray.core.tracer import (
    DEFAULT_MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    MAX_SUPPORTED_DEPTH,
    clear_render_target,
    get_framebuffer_numpy,
    get_write_counts_numpy,
    render_rows,
    set_max_depth,
    setup_render_target,
)
from tinyray.scene.manager import Scene, SceneManager

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderConfig:
    """Configuration for rendering an image.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        vfov: Vertical field of view in degrees.
        max_depth: Maximum recursion depth for reflection and refraction.
        rows_per_batch: Rows traced per kernel launch (and per callback).
    """

    width: int = 1024
    height: int = 768
    vfov: float = 60.0
    max_depth: int = DEFAULT_MAX_DEPTH
    rows_per_batch: int = 64

    def __post_init__(self) -> None:
        if not 0 < self.width <= MAX_IMAGE_WIDTH or not 0 < self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions must be within 1x1 and "
                f"{MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}, got {self.width}x{self.height}"
            )
        if not 0 <= self.max_depth <= MAX_SUPPORTED_DEPTH:
            raise ValueError(
                f"max_depth must be in [0, {MAX_SUPPORTED_DEPTH}], got {self.max_depth}"
            )
        if self.rows_per_batch <= 0:
            raise ValueError(f"rows_per_batch must be positive, got {self.rows_per_batch}")
        # Validates the field of view
        PinholeCamera(vfov=self.vfov)


class Renderer:
    """Renders a loaded scene into the framebuffer.

    The renderer owns a SceneManager and delegates to the global tracer
    buffers (which are Taichi fields), so only one image is rendered at a
    time per process.

    Attributes:
        config: The render configuration.
        scene_manager: Manager holding the loaded scene.
    """

    def __init__(self, config: RenderConfig | None = None) -> None:
        """Initialize the renderer.

        Args:
            config: Render configuration. Defaults to RenderConfig().
        """
        self.config = config if config is not None else RenderConfig()
        self.scene_manager = SceneManager()
        self._apply_config()

    def _apply_config(self) -> None:
        setup_camera(PinholeCamera(vfov=self.config.vfov))
        set_max_depth(self.config.max_depth)
        setup_render_target(self.config.width, self.config.height)

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    def load_scene(self, scene: Scene) -> None:
        """Upload a scene, replacing any scene loaded before.

        Args:
            scene: The scene to render.
        """
        self.scene_manager.load(scene)
        logger.info(
            "Scene loaded: %d spheres, %d lights, %d materials",
            len(scene.spheres),
            len(scene.lights),
            self.scene_manager.get_material_count(),
        )

    def reconfigure(self, config: RenderConfig) -> None:
        """Switch to a new configuration and clear the framebuffer."""
        self.config = config
        self._apply_config()

    def reset(self) -> None:
        """Clear the framebuffer without changing the configuration."""
        clear_render_target()

    def render_bands(self) -> Generator[tuple[int, int], None, None]:
        """Render the image band by band, yielding progress after each band.

        The framebuffer is cleared first, so each pixel ends up written
        exactly once.

        Yields:
            Tuple of (rows_done, total_rows).
        """
        # Camera, depth and render target size are module state; re-apply
        # in case another renderer changed them. This also clears the target.
        self._apply_config()

        total_rows = self.config.height
        band = self.config.rows_per_batch
        for row_start in range(0, total_rows, band):
            row_end = min(row_start + band, total_rows)
            render_rows(row_start, row_end)
            logger.debug("Rendered rows %d-%d of %d", row_start, row_end, total_rows)
            yield row_end, total_rows

    def render(self, callback: ProgressCallback | None = None) -> float:
        """Render the full image.

        Args:
            callback: Optional callback called after each band with
                (rows_done, total_rows).

        Returns:
            Elapsed wall-clock time in seconds.

        Example:
            >>> def progress(done, total):
            ...     print(f"{done}/{total} rows")
            >>> renderer.render(callback=progress)
        """
        start = time.perf_counter()
        for rows_done, total_rows in self.render_bands():
            if callback is not None:
                callback(rows_done, total_rows)
        elapsed = time.perf_counter() - start
        logger.info(
            "Rendered %dx%d (max depth %d) in %.3fs",
            self.config.width,
            self.config.height,
            self.config.max_depth,
            elapsed,
        )
        return elapsed

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the rendered image.

        Returns:
            Float32 array of shape (height, width, 3) with values in [0, 1],
            row 0 at the top.
        """
        return get_framebuffer_numpy()

    def get_write_counts(self) -> npt.NDArray[np.int32]:
        """Get how many times each pixel was written, shape (height, width)."""
        return get_write_counts_numpy()


def render_scene(scene: Scene, config: RenderConfig | None = None) -> npt.NDArray[np.float32]:
    """Render a scene in one call.

    Args:
        scene: The scene to render.
        config: Render configuration. Defaults to RenderConfig().

    Returns:
        Float32 array of shape (height, width, 3) with values in [0, 1].
    """
    renderer = Renderer(config)
    renderer.load_scene(scene)
    renderer.render()
    return renderer.get_image_numpy()
