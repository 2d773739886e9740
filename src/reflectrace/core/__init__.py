"""Core rendering module.

Components:
    ray: Ray data structure and reflection helpers
    sampler: Per-pixel PCG random streams and cone-jittered sample rays
    config: RenderParams, the parameters of one pass
    tracer: The data-parallel tracing kernel and PixelBuffer
    renderer: RayTracer, the host object driving passes

All compute-intensive operations use Taichi kernels for GPU acceleration.
"""

from .ray import RAY_EPSILON, Ray, make_ray, offset_ray_origin, reflect, vec3
from .sampler import next_random, pcg_hash, sample_basis, sample_ray, seed_rng

# Note: config, tracer and renderer are NOT imported here to avoid circular imports.
# Import directly from src.reflectrace.core.tracer or src.reflectrace.core.renderer.

__all__ = [
    "Ray",
    "make_ray",
    "vec3",
    "reflect",
    "offset_ray_origin",
    "RAY_EPSILON",
    "pcg_hash",
    "seed_rng",
    "next_random",
    "sample_basis",
    "sample_ray",
]
