"""Preview module for output and visualization.

Components:
    display: Tone mapping, gamma correction and a Matplotlib preview
    export: Image export via Pillow (PPM, PNG, ...)

Example:
    >>> from tinyray.preview import save_image, show_preview
    >>> from tinyray.core.renderer import Renderer
    >>>
    >>> renderer = Renderer()
    >>> renderer.render()
    >>> save_image(renderer, "out.png")
    >>> show_preview(renderer)
"""

from tinyray.preview.display import (
    ToneMapMethod,
    apply_gamma,
    process_image_for_display,
    show_preview,
    tone_map_max_channel,
)
from tinyray.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_image,
    save_image_from_array,
)

__all__ = [
    # Display functions
    "show_preview",
    # Tone mapping
    "tone_map_max_channel",
    "apply_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    # Export functions
    "save_image",
    "save_image_from_array",
    "image_to_uint8",
    "compute_rmse",
]
