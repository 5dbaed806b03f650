"""Path tracing integrator for Monte Carlo light transport.

This module implements the main rendering kernel using path tracing with
explicit direct lighting, material-based scattering, Russian roulette
termination and sample accumulation.

The path tracer follows rays from the camera through the scene. At every
hit it collects emission, samples the scene lights at diffuse surfaces
(with shadow rays, optionally across the light's extent for soft shadows)
and continues along a scattered direction chosen by the material.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric, Emissive)
    - Direct light sampling with soft shadows
    - Russian roulette termination after a configurable number of bounces
    - Deterministic per-(pixel, sample) random streams
    - Rendering in row tiles, one CSG scratch slot per pixel of a tile

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from buzz.api import Camera, Lambertian, SphereSpec, build_scene, render
    >>> scene = build_scene([SphereSpec((0, 0, -1), 1.0, Lambertian((0.7, 0.7, 0.7)))])
    >>> camera = Camera(lookfrom=(0, 0, 3), lookat=(0, 0, -1))
    >>> image = render(scene, camera, 64, 48, samples_per_pixel=4)
"""

import logging
import time

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from buzz.camera.camera import Camera, get_ray_jittered, setup_camera
from buzz.config import RenderConfig
from buzz.core.rng import init_seed, rand_f32
from buzz.csg.intervals import MAX_TILE_PIXELS
from buzz.errors import ConfigurationError
from buzz.materials.dielectric import get_dielectric_ior, scatter_dielectric
from buzz.materials.emissive import emitted_color
from buzz.materials.lambertian import eval_lambertian, get_lambertian_albedo, scatter_lambertian
from buzz.materials.metal import get_metal_albedo, get_metal_fuzziness, scatter_metal
from buzz.materials.registry import MaterialType, get_material_type, get_material_type_index
from buzz.scene.builder import Scene
from buzz.scene.intersection import environment_color, intersect_scene, intersect_scene_any
from buzz.scene.lights import num_lights, sample_light
from buzz.scene.upload import upload_scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Russian roulette survival probability cap
MAX_RR_PROBABILITY = 0.95

# Ray offset epsilon to avoid self-intersection
RAY_EPSILON = 1e-4

# t_min and t_max for ray intersection
T_MIN = 1e-4
T_MAX = 1e10

# Shadow rays shorter than this are treated as unoccluded
MIN_SHADOW_DISTANCE = 1e-6

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def validate_image_size(width: int, height: int) -> None:
    """Check image dimensions against the preallocated buffers.

    Raises:
        ConfigurationError: If a dimension is not a positive integer or
            exceeds the maximum supported size.
    """
    for name, value, limit in (("width", width, MAX_IMAGE_WIDTH), ("height", height, MAX_IMAGE_HEIGHT)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 1:
            raise ConfigurationError(f"Image {name} must be a positive integer, got {value!r}")
        if value > limit:
            raise ConfigurationError(
                f"Image dimensions ({width}x{height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ConfigurationError: If dimensions are invalid.
    """
    validate_image_size(width, height)
    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel."""
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    mat_type: ti.i32,
    type_index: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    seed: ti.u32,
):
    """Dispatch to the appropriate material scattering function.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, seed).
        Emissive and unknown materials never scatter.
    """
    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter, seed = scatter_lambertian(albedo, normal, seed)

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzziness = get_metal_fuzziness(type_index)
        scattered_direction, attenuation, did_scatter, seed = scatter_metal(
            albedo, fuzziness, incident_direction, normal, seed
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, did_scatter, seed = scatter_dielectric(
            ior, incident_direction, normal, front_face, seed
        )

    return scattered_direction, attenuation, did_scatter, seed


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def _offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Offset ray origin to avoid self-intersection.

    Pushes the point slightly along the normal on the side the ray will
    travel (above the surface for reflection, below for refraction).
    """
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + RAY_EPSILON * offset_dir


@ti.func
def direct_lighting(
    slot: ti.i32,
    point: vec3,
    normal: vec3,
    albedo: vec3,
    soft: ti.i32,
    shadow_samples: ti.i32,
    seed: ti.u32,
):
    """Radiance reflected by a diffuse point from all scene lights.

    Each light is sampled ``shadow_samples`` times; occluded samples
    contribute nothing and the unoccluded ones are averaged.

    Args:
        slot: CSG scratch slot of the calling task.
        point: The shaded point.
        normal: Shading normal facing the incoming ray.
        albedo: Diffuse reflectance.
        soft: 1 to sample across each light's extent.
        shadow_samples: Samples per light.
        seed: Current RNG state.

    Returns:
        A tuple of (radiance, next_seed).
    """
    total = vec3(0.0, 0.0, 0.0)
    for light in range(num_lights[None]):
        light_sum = vec3(0.0, 0.0, 0.0)
        for _ in range(shadow_samples):
            target, irradiance, seed = sample_light(light, point, soft, seed)
            to_light = target - point
            distance = tm.length(to_light)
            if distance > MIN_SHADOW_DISTANCE:
                direction = to_light / distance
                cos_theta = tm.dot(normal, direction)
                if cos_theta > 0.0:
                    shadow_origin = _offset_ray_origin(point, normal, direction)
                    blocked = intersect_scene_any(slot, shadow_origin, direction, T_MIN, distance - RAY_EPSILON)
                    if blocked == 0:
                        light_sum += irradiance * cos_theta
        total += light_sum / ti.cast(shadow_samples, ti.f32)
    return eval_lambertian(albedo) * total, seed


@ti.func
def trace_path(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    slot: ti.i32,
    seed: ti.u32,
    max_depth: ti.i32,
    direct: ti.i32,
    soft: ti.i32,
    shadow_samples: ti.i32,
    rr_depth: ti.i32,
) -> vec3:
    """Trace a single path from the camera through the scene.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        slot: CSG scratch slot of the calling task.
        seed: Initial RNG state of this (pixel, sample).
        max_depth: Maximum number of surface interactions.
        direct: 1 to sample lights at diffuse hits.
        soft: 1 to sample across each light's extent.
        shadow_samples: Shadow rays per light per diffuse hit.
        rr_depth: Bounces after which Russian roulette applies (0 = never).

    Returns:
        The estimated radiance (RGB) for this path sample.
    """
    ray, seed = get_ray_jittered(pixel_i, pixel_j, width, height, seed)
    origin = ray.origin
    direction = ray.direction

    # Accumulated radiance for this path
    radiance = vec3(0.0, 0.0, 0.0)

    # Throughput (product of all BSDF * cos / pdf terms along path)
    throughput = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for depth in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(slot, origin, direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                radiance += throughput * environment_color(direction)
                active = 0
            else:
                hit_point = hit_record.point
                normal = hit_record.normal
                mat_type = get_material_type(hit_record.material_id)
                type_index = get_material_type_index(hit_record.material_id)

                if mat_type == int(MaterialType.EMISSIVE):
                    radiance += throughput * emitted_color(type_index)
                    active = 0
                else:
                    if direct == 1 and mat_type == int(MaterialType.LAMBERTIAN):
                        albedo = get_lambertian_albedo(type_index)
                        light, seed = direct_lighting(slot, hit_point, normal, albedo, soft, shadow_samples, seed)
                        radiance += throughput * light

                    scattered_direction, attenuation, did_scatter, seed = _scatter_material(
                        mat_type, type_index, direction, normal, hit_record.front_face, seed
                    )

                    if did_scatter == 0:
                        active = 0
                    else:
                        throughput *= attenuation

                        # Russian roulette termination after the configured bounces
                        if rr_depth > 0 and depth + 1 >= rr_depth:
                            luminance = 0.2126 * throughput.x + 0.7152 * throughput.y + 0.0722 * throughput.z
                            rr_prob = tm.min(luminance, MAX_RR_PROBABILITY)
                            survive, seed = rand_f32(seed)
                            if survive > rr_prob:
                                active = 0
                            else:
                                # Compensate for termination probability
                                throughput /= rr_prob

                        if active == 1:
                            origin = _offset_ray_origin(hit_point, normal, scattered_direction)
                            direction = scattered_direction

    return radiance


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_tile(
    width: ti.i32,
    height: ti.i32,
    row_start: ti.i32,
    rows: ti.i32,
    sample_index: ti.i32,
    seed: ti.i32,
    max_depth: ti.i32,
    direct: ti.i32,
    soft: ti.i32,
    shadow_samples: ti.i32,
    rr_depth: ti.i32,
):
    """Render one sample for every pixel of a band of rows and accumulate."""
    for i, local_j in ti.ndrange(width, rows):
        j = row_start + local_j
        slot = local_j * width + i
        rng = init_seed(seed, j * width + i, sample_index)
        color = trace_path(i, j, width, height, slot, rng, max_depth, direct, soft, shadow_samples, rr_depth)

        # Clamp negative values (numerical errors)
        color = tm.max(color, vec3(0.0, 0.0, 0.0))

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _sample_count[i, j] += 1
        n = _sample_count[i, j]
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


def rows_per_tile(width: int) -> int:
    """Rows rendered per kernel launch so a tile fits the CSG scratch slots."""
    return max(1, MAX_TILE_PIXELS // width)


def render_samples(first_sample: int, num_samples: int, max_depth: int, config: RenderConfig) -> None:
    """Accumulate samples into the render target.

    The resident scene, camera and render target are used as they are.

    Args:
        first_sample: Index of the first sample, which selects its random
            stream; continuing a render must pass the samples done so far.
        num_samples: Number of samples per pixel to add.
        max_depth: Maximum number of surface interactions per path.
        config: Integrator settings.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    tile_rows = rows_per_tile(width)

    for sample_index in range(first_sample, first_sample + num_samples):
        for row_start in range(0, height, tile_rows):
            rows = min(tile_rows, height - row_start)
            logger.debug("Sample %d: tile rows %d-%d", sample_index, row_start, row_start + rows - 1)
            _render_tile(
                width,
                height,
                row_start,
                rows,
                sample_index,
                config.seed,
                max_depth,
                int(config.direct_lighting),
                int(config.soft_shadows),
                config.effective_shadow_samples,
                config.russian_roulette_depth,
            )


def get_normalized_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Returns the color buffer with values clamped to [0, 1]. The array
    shape is (height, width, 3) with dtype float32 and row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()

    # Extract the active region of the full buffer
    image = _color_buffer.to_numpy()[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (Taichi uses bottom-left origin, images use top-left)
    image = np.flipud(image)

    image = np.clip(image, 0.0, 1.0)
    return np.ascontiguousarray(image, dtype=np.float32)


def to_srgb8(image: npt.ArrayLike, gamma: float = 2.2) -> npt.NDArray[np.uint8]:
    """Gamma-encode a linear [0, 1] image to 8 bits per channel.

    Args:
        image: Linear image, any shape; values are clamped to [0, 1].
        gamma: Display gamma. Default 2.2 approximates sRGB.

    Returns:
        A uint8 array of the same shape.
    """
    if gamma <= 0.0:
        raise ConfigurationError(f"gamma must be positive, got {gamma}")
    linear = np.clip(np.asarray(image, dtype=np.float32), 0.0, 1.0)
    encoded = np.power(linear, 1.0 / gamma)
    return np.round(encoded * 255.0).astype(np.uint8)


# =============================================================================
# Public Rendering API
# =============================================================================


def validate_render_args(scene, camera, samples_per_pixel: int, max_depth: int, config) -> RenderConfig:
    """Check render arguments; returns the effective configuration.

    Raises:
        ConfigurationError: On any invalid argument.
    """
    if not isinstance(scene, Scene):
        raise ConfigurationError(f"scene must be a Scene built by build_scene, got {type(scene).__name__}")
    if not isinstance(camera, Camera):
        raise ConfigurationError(f"camera must be a Camera, got {type(camera).__name__}")
    if isinstance(samples_per_pixel, bool) or not isinstance(samples_per_pixel, int) or samples_per_pixel < 1:
        raise ConfigurationError(f"samples_per_pixel must be a positive integer, got {samples_per_pixel!r}")
    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
        raise ConfigurationError(f"max_depth must be a positive integer, got {max_depth!r}")
    if config is None:
        config = RenderConfig()
    elif not isinstance(config, RenderConfig):
        raise ConfigurationError(f"config must be a RenderConfig, got {type(config).__name__}")
    return config


def render(
    scene: Scene,
    camera: Camera,
    width: int,
    height: int,
    samples_per_pixel: int = 1,
    max_depth: int = 8,
    config: RenderConfig | None = None,
) -> npt.NDArray[np.float32]:
    """Render a scene to a linear RGB image.

    Args:
        scene: Scene built by build_scene.
        camera: Camera; its aspect ratio defaults to width / height.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Paths traced per pixel.
        max_depth: Maximum number of surface interactions per path.
        config: Integrator settings; defaults to RenderConfig().

    Returns:
        Array of shape (height, width, 3), float32, in [0, 1], row 0 at the
        top. No gamma is applied (see to_srgb8).

    Raises:
        ConfigurationError: If any argument is invalid. Nothing is rendered.
    """
    validate_image_size(width, height)
    config = validate_render_args(scene, camera, samples_per_pixel, max_depth, config)

    upload_scene(scene)
    setup_camera(camera, aspect_ratio=width / height)
    setup_render_target(width, height)

    start = time.perf_counter()
    render_samples(0, samples_per_pixel, max_depth, config)
    image = get_normalized_image_numpy()
    elapsed = time.perf_counter() - start

    logger.info(
        "Rendered %dx%d at %d spp (max depth %d) in %.2fs",
        width,
        height,
        samples_per_pixel,
        max_depth,
        elapsed,
    )
    return image
