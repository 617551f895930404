"""Tone mapping and Matplotlib preview for rendered images.

This module provides the host-side display pipeline for rendered images:

Features:
    - Hue-preserving max-channel tone mapping (same rule as the tracer)
    - Gamma correction (sRGB 2.2)
    - Optional Matplotlib preview window

Images coming out of the Renderer are already tone mapped; the functions
here also accept arbitrary linear RGB arrays (for example the output of
trace() for a batch of rays).

Example:
    >>> from tinyray.preview.display import show_preview
    >>> from tinyray.core.renderer import Renderer
    >>>
    >>> renderer = Renderer()
    >>> renderer.render()
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from tinyray.core.renderer import Renderer


# Type alias for tone mapping options
ToneMapMethod = Literal["none", "max_channel"]


def tone_map_max_channel(
    image: npt.NDArray[np.float32],
) -> npt.NDArray[np.float32]:
    """Rescale every pixel whose largest channel exceeds 1 by that channel.

    Negative values are clamped to 0 first. Pixels already within [0, 1]
    are unchanged, and the ratios between channels are kept, so bright
    highlights saturate without shifting hue.

    Args:
        image: Linear image array of shape (..., 3).

    Returns:
        Tone mapped image in [0, 1] range.
    """
    image = np.maximum(np.nan_to_num(image, nan=0.0), 0.0)
    peak = image.max(axis=-1, keepdims=True)
    scale = np.where(peak > 1.0, peak, 1.0)
    return (image / scale).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Apply gamma correction for display.

    Args:
        image: Linear image array of shape (H, W, 3) in [0, 1] range.
        gamma: Gamma value (2.2 for sRGB). 1.0 leaves the image unchanged.

    Returns:
        Gamma corrected image.
    """
    if gamma == 1.0:
        return image

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)
    result = np.power(image, 1.0 / gamma)

    return result.astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "max_channel",
    gamma: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Process an image for display with tone mapping and gamma correction.

    Applies the display pipeline:
    1. Tone mapping (optional)
    2. Gamma correction (optional; the reference output is linear)
    3. Clamping to [0, 1]

    Args:
        image: Linear image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none" or "max_channel").
        gamma: Gamma correction value (default 1.0, no correction).

    Returns:
        Processed image ready for display, in [0, 1] range.

    Raises:
        ValueError: If the tone mapping method is unknown.
    """
    result = np.asarray(image, dtype=np.float32).copy()

    if tone_map == "max_channel":
        result = tone_map_max_channel(result)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    result = apply_gamma(result, gamma)
    result = np.clip(result, 0.0, 1.0)

    return result.astype(np.float32)


def show_preview(
    renderer: Renderer,
    *,
    gamma: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display the current render as a Matplotlib figure.

    Requires the optional ``matplotlib`` dependency.

    Args:
        renderer: The Renderer whose framebuffer is shown.
        gamma: Gamma correction value (default 1.0).
        title: Custom title (default shows the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(renderer.get_image_numpy(), gamma=gamma)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = f"Render Preview - {renderer.width}x{renderer.height}"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
