"""Sphere primitive with robust ray-sphere intersection.

This module provides a Sphere dataclass plus closest-hit and full-line
interval queries, using the robust quadratic formula from Ray Tracing Gems
to avoid floating-point artifacts.

The robust quadratic formula avoids catastrophic cancellation when b^2 is
nearly equal to 4ac by using a reformulated calculation that maintains
numerical stability.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from buzz.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from buzz.geometry.hit_record import HitRecord, make_hit_record, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.func
def solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve quadratic equation using robust formula from Ray Tracing Gems.

    Solves a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Fall back to standard formula for edge cases
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def sphere_interval(ray_origin: vec3, ray_direction: vec3, center: vec3, radius: ti.f32):
    """Intersect the full line of a ray with a solid sphere.

    The ray-sphere intersection is found by solving:
        |ray_origin + t * ray_direction - center|^2 = radius^2

    which expands to a*t^2 + 2*h*t + c = 0 with
        a = dot(direction, direction)
        h = dot(direction, oc)
        c = dot(oc, oc) - radius^2
        oc = origin - center

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        center: The center of the sphere.
        radius: The radius of the sphere.

    Returns:
        A tuple (valid, t_enter, t_exit). Negative parameters are kept so the
        span can be combined by the CSG sweep.
    """
    oc = ray_origin - center
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - radius * radius
    discriminant = h * h - a * c

    valid = 0
    t_enter = 0.0
    t_exit = 0.0
    if discriminant >= 0.0 and a > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t_enter, t_exit = solve_quadratic_robust(h, a, c, sqrt_d)
        valid = 1
    return valid, t_enter, t_exit


@ti.func
def sphere_normal(point: vec3, center: vec3, radius: ti.f32) -> vec3:
    """Outward unit normal of a sphere at a surface point."""
    return (point - center) / radius


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection using robust quadratic formula.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        sphere: The sphere to test intersection against.
        t_min: Minimum t value to consider a valid hit (avoids self-intersection).
        t_max: Maximum t value to consider a valid hit (for shadow rays, etc.).

    Returns:
        A HitRecord containing intersection information. Check hit field
        to determine if intersection occurred.
    """
    result = make_miss_record()
    valid, t0, t1 = sphere_interval(ray_origin, ray_direction, sphere.center, sphere.radius)

    if valid == 1:
        # Find the first valid intersection in (t_min, t_max)
        t = t0
        in_range = (t > t_min) and (t < t_max)
        if not in_range:
            t = t1
            in_range = (t > t_min) and (t < t_max)

        if in_range:
            hit_point = ray_origin + t * ray_direction
            outward_normal = sphere_normal(hit_point, sphere.center, sphere.radius)
            result = make_hit_record(ray_origin, ray_direction, t, outward_normal)

    return result
