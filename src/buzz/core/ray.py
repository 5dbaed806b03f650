"""Ray data structure and vector utilities for Taichi kernels.

This module provides the Ray dataclass and the vector and sampling helpers
shared by geometry, materials, the camera and the integrator. Random sampling
functions take the RNG state explicitly and return the advanced state (see
``buzz.core.rng``).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from buzz.core.rng import rand_f32

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Intersection code
            uses the parametrisation origin + t * direction, so it need not be
            unit length, but the integrator always normalises it.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract an incident vector through a surface.

    Computes the refracted direction using Snell's law. If total internal
    reflection occurs, returns a zero vector.

    Args:
        incident: The incoming direction vector (should be normalized).
        normal: The surface normal, facing against the incident direction.
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction vector, or zero vector if total internal
        reflection occurs.
    """
    cos_i = -tm.dot(incident, normal)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    result = vec3(0.0, 0.0, 0.0)
    if sin2_t <= 1.0:
        cos_t = ti.sqrt(1.0 - sin2_t)
        result = eta * incident + (eta * cos_i - cos_t) * normal
    return result


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(seed: ti.u32):
    """Generate a random point inside the unit sphere.

    Uses rejection sampling with a bounded number of attempts.

    Args:
        seed: Current RNG state.

    Returns:
        A tuple of (point, next_seed) with |point| < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Rejection sampling loop
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            x, seed = rand_f32(seed)
            y, seed = rand_f32(seed)
            z, seed = rand_f32(seed)
            p = vec3(x * 2.0 - 1.0, y * 2.0 - 1.0, z * 2.0 - 1.0)
            if length_squared(p) < 1.0:
                found = True
    return p, seed


@ti.func
def random_unit_vector(seed: ti.u32):
    """Generate a random unit vector uniformly distributed on the sphere.

    Returns:
        A tuple of (direction, next_seed).
    """
    p, seed = random_in_unit_sphere(seed)
    result = vec3(0.0, 0.0, 1.0)
    if length_squared(p) > 1e-12:
        result = tm.normalize(p)
    return result, seed


@ti.func
def random_in_unit_disk(seed: ti.u32):
    """Generate a random point inside the unit disk in the xy-plane.

    Used for lens sampling and for soft-shadow sampling of spherical lights.

    Returns:
        A tuple of (point, next_seed) with point = (x, y, 0), x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):
        if not found:
            x, seed = rand_f32(seed)
            y, seed = rand_f32(seed)
            p = vec3(x * 2.0 - 1.0, y * 2.0 - 1.0, 0.0)
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p, seed


@ti.func
def random_cosine_direction(seed: ti.u32):
    """Generate a random direction with cosine-weighted distribution.

    The distribution has PDF = cos(theta) / pi in the local frame (z-up).

    Returns:
        A tuple of (local_direction, next_seed).
    """
    r1, seed = rand_f32(seed)
    r2, seed = rand_f32(seed)
    phi = 2.0 * tm.pi * r1
    sqrt_r2 = ti.sqrt(r2)
    x = ti.cos(phi) * sqrt_r2
    y = ti.sin(phi) * sqrt_r2
    z = ti.sqrt(1.0 - r2)
    return vec3(x, y, z), seed


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis from a normal vector.

    Creates a local coordinate frame where the normal is the z-axis.

    Args:
        normal: The surface normal (should be normalized).

    Returns:
        A tuple (tangent, bitangent, normal) forming an orthonormal basis.
    """
    # Choose a vector not parallel to normal
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = tm.normalize(tm.cross(a, normal))
    bitangent = tm.cross(normal, tangent)
    return tangent, bitangent, normal


@ti.func
def local_to_world(local_dir: vec3, tangent: vec3, bitangent: vec3, normal: vec3) -> vec3:
    """Transform a direction from local (z-up) to world coordinates."""
    return local_dir.x * tangent + local_dir.y * bitangent + local_dir.z * normal


@ti.func
def sample_cosine_hemisphere(normal: vec3, seed: ti.u32):
    """Cosine-weighted hemisphere sampling for diffuse surfaces.

    Args:
        normal: The surface normal defining the hemisphere orientation.
        seed: Current RNG state.

    Returns:
        A tuple of (direction, pdf, next_seed) where pdf = cos(theta) / pi.
    """
    local_dir, seed = random_cosine_direction(seed)
    tangent, bitangent, n = build_onb_from_normal(normal)
    world_dir = local_to_world(local_dir, tangent, bitangent, n)
    pdf = tm.dot(world_dir, normal) / tm.pi
    return world_dir, pdf, seed
