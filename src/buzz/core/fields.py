"""Helpers for loading NumPy tables into preallocated Taichi fields.

Scene tables are stored in fields allocated once at their maximum capacity,
so kernels are compiled once regardless of scene size. Loading copies the
active rows into the front of the field and zero-fills the rest.
"""

import numpy as np
import numpy.typing as npt


def fill_field(field, data: npt.ArrayLike) -> int:
    """Copy ``data`` into the leading rows of a preallocated field.

    Args:
        field: A Taichi scalar or vector field with a 1D shape.
        data: Array whose first axis indexes rows. Trailing axes must match
            the field's element shape.

    Returns:
        The number of rows copied.

    Raises:
        ValueError: If ``data`` has more rows than the field can hold.
    """
    capacity = field.shape[0]
    template = field.to_numpy()
    array = np.asarray(data, dtype=template.dtype)
    rows = array.shape[0] if array.ndim > 0 else 0
    if rows > capacity:
        raise ValueError(f"Cannot load {rows} rows into a field of capacity {capacity}")

    padded = np.zeros_like(template)
    if rows > 0:
        padded[:rows] = array.reshape((rows,) + template.shape[1:])
    field.from_numpy(padded)
    return rows
