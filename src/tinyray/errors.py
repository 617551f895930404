"""Scene construction errors and parameter validation.

Every scene object (materials, spheres, lights, floors, environment maps) is
validated when it is constructed. Invalid input raises
InvalidSceneParameter and the object is never created, so a Scene is
either built completely or not at all.

Example:
    >>> from tinyray.errors import InvalidSceneParameter, require_positive
    >>> require_positive("radius", 2.0)
    2.0
    >>> require_positive("radius", -1.0)
    Traceback (most recent call last):
        ...
    tinyray.errors.InvalidSceneParameter: radius must be positive, got -1.0
"""

import math
from collections.abc import Sequence
from typing import Any


class InvalidSceneParameter(ValueError):
    """A scene parameter is outside its valid range.

    Attributes:
        parameter: Name of the offending parameter (e.g. "radius").
        value: The rejected value.
    """

    def __init__(self, parameter: str, value: Any, reason: str) -> None:
        self.parameter = parameter
        self.value = value
        super().__init__(f"{parameter} {reason}, got {value!r}")


def require_finite(name: str, value: Any) -> float:
    """Return value as a float, rejecting non-numeric and non-finite values."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidSceneParameter(name, value, "must be a number") from None
    if not math.isfinite(number):
        raise InvalidSceneParameter(name, value, "must be finite")
    return number


def require_positive(name: str, value: Any) -> float:
    """Return value as a float, rejecting zero, negative and non-finite values."""
    number = require_finite(name, value)
    if number <= 0.0:
        raise InvalidSceneParameter(name, value, "must be positive")
    return number


def require_non_negative(name: str, value: Any) -> float:
    """Return value as a float, rejecting negative and non-finite values."""
    number = require_finite(name, value)
    if number < 0.0:
        raise InvalidSceneParameter(name, value, "must be non-negative")
    return number


def require_finite_vector(
    name: str,
    value: Any,
    size: int = 3,
    non_negative: bool = False,
) -> tuple[float, ...]:
    """Validate a fixed-size vector and return it as a tuple of floats.

    Args:
        name: Parameter name used in the error message.
        value: A sequence of numbers (tuple, list or NumPy array).
        size: Required number of components.
        non_negative: Also reject negative components.

    Returns:
        The components as a tuple of Python floats.

    Raises:
        InvalidSceneParameter: If the value has the wrong length or any
            component is non-finite (or negative when non_negative is set).
    """
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        try:
            value = list(value)
        except TypeError:
            raise InvalidSceneParameter(name, value, f"must be a {size}-vector") from None
    if len(value) != size:
        raise InvalidSceneParameter(name, value, f"must have {size} components")

    components = []
    for i, component in enumerate(value):
        label = f"{name}[{i}]"
        if non_negative:
            components.append(require_non_negative(label, component))
        else:
            components.append(require_finite(label, component))
    return tuple(components)
