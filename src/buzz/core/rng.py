"""Counter-based random number generation for Taichi kernels.

Every stochastic Taichi function takes the current RNG state as an argument
and returns the advanced state alongside its result:

    value, seed = rand_f32(seed)

The state is a single ``u32`` advanced with an integer avalanche hash. Each
(pixel, sample) pair derives its own starting state from the render seed, so
renders are bit-identical across runs and no state is shared between parallel
tasks. The built-in ``ti.random`` is never used by the renderer.

Example:
    >>> @ti.kernel
    ... def noise():
    ...     for i in range(16):
    ...         seed = init_seed(7, i, 0)
    ...         value, seed = rand_f32(seed)
"""

import taichi as ti
import taichi.math as tm

vec2 = tm.vec2

# Avalanche multiplier of the hash (all constants fit in a signed 32-bit literal)
_HASH_MULTIPLIER = 0x45D9F3B

# Odd constants mixed into the seed for the pixel and sample indices
_PIXEL_MIX = 0x27D4EB2F
_SAMPLE_MIX = 0x165667B1

# Golden-ratio increment applied before each hash step
_STEP = 0x7F4A7C15

# 2^-24: converts the top 24 bits of a u32 to a float in [0, 1)
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def _u32(value):
    return ti.cast(value, ti.u32)


@ti.func
def hash_u32(value: ti.u32) -> ti.u32:
    """Avalanche hash of a 32-bit word.

    Args:
        value: Input word.

    Returns:
        The hashed word. Every input bit affects every output bit.
    """
    x = value
    x = ((x >> _u32(16)) ^ x) * _u32(_HASH_MULTIPLIER)
    x = ((x >> _u32(16)) ^ x) * _u32(_HASH_MULTIPLIER)
    x = (x >> _u32(16)) ^ x
    return x


@ti.func
def init_seed(seed: ti.i32, pixel_index: ti.i32, sample_index: ti.i32) -> ti.u32:
    """Derive the starting RNG state for one (pixel, sample) task.

    Args:
        seed: The render seed.
        pixel_index: Linear pixel index (row * width + column).
        sample_index: Index of the sample within the pixel.

    Returns:
        The initial state for this task.
    """
    state = hash_u32(_u32(seed))
    state = hash_u32(state ^ (_u32(pixel_index) * _u32(_PIXEL_MIX)))
    state = hash_u32(state ^ (_u32(sample_index) * _u32(_SAMPLE_MIX)))
    return state


@ti.func
def rand_f32(seed: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        seed: Current RNG state.

    Returns:
        A tuple of (value, next_seed).
    """
    next_seed = hash_u32(seed + _u32(_STEP))
    value = ti.cast(next_seed >> _u32(8), ti.f32) * _INV_2_24
    return value, next_seed


@ti.func
def rand_vec2(seed: ti.u32):
    """Draw two independent uniform floats in [0, 1).

    Returns:
        A tuple of (vec2, next_seed).
    """
    x, seed = rand_f32(seed)
    y, seed = rand_f32(seed)
    return vec2(x, y), seed
