"""Triangle primitive with Moller-Trumbore intersection.

Triangles are the building block of triangle meshes. Each triangle carries
its three vertices and, optionally, three per-vertex normals which are
interpolated with the barycentric coordinates of the hit for smooth shading.

The geometric normal follows the winding order: for vertices (v0, v1, v2)
it is normalize(cross(v1 - v0, v2 - v0)). Closed meshes must be wound
counter-clockwise when seen from outside so that the geometric normal points
out of the solid.

Degenerate (near-zero-area) triangles never report a hit.
"""

import taichi as ti
import taichi.math as tm

from buzz.geometry.hit_record import HitRecord, make_hit_record, make_miss_record

# Type alias for 3D vectors
vec3 = tm.vec3

# Determinant threshold below which the ray is parallel to the triangle
DETERMINANT_EPSILON = 1e-9

# Squared double-area threshold below which a triangle is degenerate
DEGENERATE_AREA_EPSILON = 1e-16


@ti.dataclass
class Triangle:
    """A triangle with optional per-vertex normals.

    Attributes:
        v0, v1, v2: Vertex positions.
        n0, n1, n2: Vertex normals, used only when smooth == 1.
        smooth: 1 to interpolate vertex normals, 0 for flat shading.
    """

    v0: vec3
    v1: vec3
    v2: vec3
    n0: vec3
    n1: vec3
    n2: vec3
    smooth: ti.i32


@ti.func
def intersect_triangle(ray_origin: vec3, ray_direction: vec3, v0: vec3, v1: vec3, v2: vec3):
    """Moller-Trumbore ray-triangle test on the full line of the ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.

    Returns:
        A tuple (hit, t, u, v) where u and v are the barycentric weights of
        v1 and v2. No range check is applied to t.
    """
    edge1 = v1 - v0
    edge2 = v2 - v0
    p = tm.cross(ray_direction, edge2)
    det = tm.dot(edge1, p)

    hit = 0
    t = 0.0
    u = 0.0
    v = 0.0
    area2 = tm.dot(tm.cross(edge1, edge2), tm.cross(edge1, edge2))
    if ti.abs(det) > DETERMINANT_EPSILON and area2 > DEGENERATE_AREA_EPSILON:
        inv_det = 1.0 / det
        s = ray_origin - v0
        u = tm.dot(s, p) * inv_det
        q = tm.cross(s, edge1)
        v = tm.dot(ray_direction, q) * inv_det
        if u >= 0.0 and v >= 0.0 and u + v <= 1.0:
            t = tm.dot(edge2, q) * inv_det
            hit = 1
    return hit, t, u, v


@ti.func
def triangle_geometric_normal(v0: vec3, v1: vec3, v2: vec3) -> vec3:
    """Unit normal given by the triangle's winding order."""
    return tm.normalize(tm.cross(v1 - v0, v2 - v0))


@ti.func
def triangle_barycentric(point: vec3, v0: vec3, v1: vec3, v2: vec3):
    """Barycentric weights (u, v) of v1 and v2 for a point on the triangle plane."""
    e1 = v1 - v0
    e2 = v2 - v0
    ep = point - v0
    d11 = tm.dot(e1, e1)
    d12 = tm.dot(e1, e2)
    d22 = tm.dot(e2, e2)
    dp1 = tm.dot(ep, e1)
    dp2 = tm.dot(ep, e2)
    denom = d11 * d22 - d12 * d12
    u = 0.0
    v = 0.0
    if ti.abs(denom) > DEGENERATE_AREA_EPSILON:
        u = (d22 * dp1 - d12 * dp2) / denom
        v = (d11 * dp2 - d12 * dp1) / denom
    return u, v


@ti.func
def triangle_shading_normal(tri: Triangle, u: ti.f32, v: ti.f32) -> vec3:
    """Outward shading normal at barycentric coordinates (u, v).

    Interpolated vertex normals are flipped if needed so they stay on the
    same side as the geometric normal.
    """
    geometric = triangle_geometric_normal(tri.v0, tri.v1, tri.v2)
    normal = geometric
    if tri.smooth == 1:
        interpolated = (1.0 - u - v) * tri.n0 + u * tri.n1 + v * tri.n2
        if tm.dot(interpolated, interpolated) > 1e-12:
            normal = tm.normalize(interpolated)
            if tm.dot(normal, geometric) < 0.0:
                normal = -normal
    return normal


@ti.func
def hit_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    tri: Triangle,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-triangle intersection within (t_min, t_max).

    front_face is decided by the geometric normal, while the returned normal
    is the (possibly smooth) shading normal oriented the same way.
    """
    result = make_miss_record()
    hit, t, u, v = intersect_triangle(ray_origin, ray_direction, tri.v0, tri.v1, tri.v2)
    if hit == 1 and t > t_min and t < t_max:
        geometric = triangle_geometric_normal(tri.v0, tri.v1, tri.v2)
        shading = triangle_shading_normal(tri, u, v)
        result = make_hit_record(ray_origin, ray_direction, t, geometric)
        if result.front_face == 1:
            result.normal = shading
        else:
            result.normal = -shading
    return result
