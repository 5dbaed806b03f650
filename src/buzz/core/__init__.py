"""Core rendering module.

Components:
    rng: Counter-based hash RNG with explicitly threaded state
    ray: Ray data structure, vector utilities and sampling helpers
    fields: Loading NumPy tables into preallocated Taichi fields
    integrator: Iterative path tracer, render kernel and image buffers
    progressive: Progressive sample accumulation wrapper

The core module handles the rendering equation integration, implementing
Monte Carlo path tracing with direct light sampling, Russian roulette
termination and progressive accumulation for anti-aliasing.
"""

from .ray import (
    Ray,
    build_onb_from_normal,
    length_squared,
    local_to_world,
    make_ray,
    near_zero,
    random_cosine_direction,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    sample_cosine_hemisphere,
    schlick_fresnel,
    vec3,
)
from .rng import hash_u32, init_seed, rand_f32, rand_vec2

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from buzz.core.integrator or buzz.core.progressive when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length_squared",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "random_cosine_direction",
    "build_onb_from_normal",
    "local_to_world",
    "sample_cosine_hemisphere",
    "hash_u32",
    "init_seed",
    "rand_f32",
    "rand_vec2",
]
