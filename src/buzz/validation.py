"""Parameter checks shared by scene specs and material registries.

All checks raise ConfigurationError with a message naming the offending
parameter, so invalid scenes are rejected before any kernel runs.
"""

import math

from buzz.errors import ConfigurationError

Vec3 = tuple[float, float, float]


def as_vec3(value, name: str) -> Vec3:
    """Convert a 3-sequence of finite numbers to a float tuple.

    Raises:
        ConfigurationError: If the value is not three finite numbers.
    """
    try:
        items = [float(component) for component in value]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a sequence of three numbers, got {value!r}") from exc
    if len(items) != 3:
        raise ConfigurationError(f"{name} must have exactly three components, got {len(items)}")
    for i, component in enumerate(items):
        if not math.isfinite(component):
            raise ConfigurationError(f"{name} component {i} = {component} is not finite")
    return (items[0], items[1], items[2])


def as_finite(value, name: str) -> float:
    """Convert a number to float, rejecting NaN and infinities."""
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(result):
        raise ConfigurationError(f"{name} = {result} is not finite")
    return result


def validate_albedo(albedo, name: str = "Albedo") -> Vec3:
    """Check that every albedo component lies in [0, 1]."""
    color = as_vec3(albedo, name)
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ConfigurationError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return color


def validate_fuzziness(fuzziness) -> float:
    """Check that metal fuzziness lies in [0, 1]."""
    value = as_finite(fuzziness, "Fuzziness")
    if value < 0.0 or value > 1.0:
        raise ConfigurationError(
            f"Fuzziness = {value} is outside [0, 1]. "
            "Fuzziness must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )
    return value


def validate_refractive_index(refractive_index) -> float:
    """Check that a refractive index is at least 1."""
    value = as_finite(refractive_index, "Refractive index")
    if value < 1.0:
        raise ConfigurationError(
            f"Refractive index = {value} is less than 1.0. "
            "It must be >= 1.0 for physically meaningful materials."
        )
    return value


def validate_emission(color, name: str = "Emission") -> Vec3:
    """Check that every emitted radiance component is non-negative."""
    emission = as_vec3(color, name)
    for i, component in enumerate(emission):
        if component < 0.0:
            raise ConfigurationError(f"{name} component {i} = {component} is negative.")
    return emission
