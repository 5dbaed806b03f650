"""Render configuration and environment (background) settings.

These are plain Python dataclasses with no Taichi state, so they can be
created before ``ti.init`` is called.

Example:
    >>> from buzz.config import Environment, RenderConfig
    >>> config = RenderConfig(shadow_samples=16, seed=7)
    >>> env = Environment.gradient((1.0, 1.0, 1.0), (0.5, 0.7, 1.0))
"""

from dataclasses import dataclass

from buzz.errors import ConfigurationError
from buzz.validation import validate_emission

Color = tuple[float, float, float]

# Default sky: white at the horizon blending to light blue overhead
SKY_BOTTOM: Color = (1.0, 1.0, 1.0)
SKY_TOP: Color = (0.5, 0.7, 1.0)


@dataclass(frozen=True)
class Environment:
    """Background radiance returned for rays that escape the scene.

    The radiance is a linear blend between ``bottom`` and ``top`` driven by
    the y component of the normalised ray direction:
    ``t = 0.5 * (dir.y + 1)``, ``color = (1 - t) * bottom + t * top``.
    A flat colour uses the same value for both ends.

    Attributes:
        bottom: Radiance for rays pointing straight down.
        top: Radiance for rays pointing straight up.
    """

    bottom: Color = SKY_BOTTOM
    top: Color = SKY_TOP

    def __post_init__(self) -> None:
        object.__setattr__(self, "bottom", validate_emission(self.bottom, "Environment bottom"))
        object.__setattr__(self, "top", validate_emission(self.top, "Environment top"))

    @classmethod
    def color(cls, color: Color) -> "Environment":
        """Create a uniform environment of a single colour."""
        return cls(bottom=color, top=color)

    @classmethod
    def gradient(cls, bottom: Color, top: Color) -> "Environment":
        """Create a vertical gradient environment."""
        return cls(bottom=bottom, top=top)

    @classmethod
    def sky(cls) -> "Environment":
        """The default white-to-blue sky gradient."""
        return cls()


@dataclass(frozen=True)
class RenderConfig:
    """Integrator settings that are independent of the image size.

    Attributes:
        direct_lighting: Sample scene lights explicitly at diffuse hits.
        soft_shadows: Sample points across each light's extent. When False,
            lights are treated as points at their centre and a single
            shadow ray is cast per light.
        shadow_samples: Shadow rays per light per diffuse hit.
        russian_roulette_depth: Bounce count after which paths may be
            terminated stochastically. 0 disables Russian roulette.
        seed: Base seed of the per-pixel random streams.
    """

    direct_lighting: bool = True
    soft_shadows: bool = True
    shadow_samples: int = 4
    russian_roulette_depth: int = 3
    seed: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.shadow_samples, int) or self.shadow_samples < 1:
            raise ConfigurationError(
                f"shadow_samples must be a positive integer, got {self.shadow_samples!r}"
            )
        if not isinstance(self.russian_roulette_depth, int) or self.russian_roulette_depth < 0:
            raise ConfigurationError(
                "russian_roulette_depth must be a non-negative integer, "
                f"got {self.russian_roulette_depth!r}"
            )
        if not isinstance(self.seed, int) or not 0 <= self.seed < 2**31:
            raise ConfigurationError(
                f"seed must be an integer in [0, 2**31), got {self.seed!r}"
            )

    @property
    def effective_shadow_samples(self) -> int:
        """Shadow rays actually cast per light (one when shadows are hard)."""
        return self.shadow_samples if self.soft_shadows else 1
