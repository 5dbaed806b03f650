"""Exception types raised by the renderer.

Degenerate geometry and numeric edge cases never surface as exceptions: the
scene builder skips degenerate primitives with a warning and the kernels guard
divisions with epsilon thresholds. Only problems that would make a whole render
meaningless are raised, and always before any kernel is launched.
"""


class BuzzError(Exception):
    """Base class for all renderer errors."""


class ConfigurationError(BuzzError, ValueError):
    """Invalid render parameters, material parameters or scene contents.

    Raised for non-positive image dimensions, sample counts or depth limits,
    empty scenes, out-of-range material parameters and exceeded capacities.
    """


class InvalidCsgTreeError(BuzzError, ValueError):
    """A CSG tree that cannot produce well-formed interval lists.

    Raised when an operand is not a closed solid (for example an open triangle
    mesh), when an operator tag is unknown, or when the tree needs more
    evaluation stack than the kernels provide.
    """
