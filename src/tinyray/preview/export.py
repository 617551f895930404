"""Image export utilities for rendered images.

This module saves framebuffers to disk. Encoding is done by Pillow and the
format follows the file extension:

Supported formats:
    - PPM (binary P6, the tracer's traditional output)
    - PNG and anything else Pillow can write from 8-bit RGB

Pixels are quantised as floor(255 * value) after clamping to [0, 1].

Example:
    >>> from tinyray.preview.export import save_image
    >>> from tinyray.core.renderer import Renderer
    >>>
    >>> renderer = Renderer()
    >>> renderer.render()
    >>> save_image(renderer, "out.ppm")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from tinyray.preview.display import ToneMapMethod, process_image_for_display

if TYPE_CHECKING:
    from tinyray.core.renderer import Renderer

logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "max_channel",
    gamma: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a float32 image to uint8 for display/export.

    Args:
        image: Image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none" or "max_channel").
        gamma: Gamma correction value (default 1.0).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    processed = process_image_for_display(image, tone_map=tone_map, gamma=gamma)
    return (processed * 255).astype(np.uint8)


def save_image_from_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "max_channel",
    gamma: float = 1.0,
) -> None:
    """Save a NumPy image array to a file.

    Args:
        image: Image array of shape (H, W, 3).
        filepath: Output file path; the extension selects the format.
        tone_map: Tone mapping method ("none" or "max_channel").
        gamma: Gamma correction value (default 1.0).
    """
    image_uint8 = image_to_uint8(image, tone_map=tone_map, gamma=gamma)

    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath)
    logger.info("Saved %dx%d image to %s", image_uint8.shape[1], image_uint8.shape[0], filepath)


def save_image(
    renderer: Renderer,
    filepath: str | Path,
    *,
    gamma: float = 1.0,
) -> None:
    """Save the renderer's framebuffer to a file.

    Args:
        renderer: The Renderer instance to save.
        filepath: Output file path (e.g. "out.ppm" or "out.png").
        gamma: Gamma correction value (default 1.0).
    """
    save_image_from_array(renderer.get_image_numpy(), filepath, gamma=gamma)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
