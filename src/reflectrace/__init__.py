"""Data-parallel reflection ray tracer built on Taichi.

This package renders scenes of spheres, planes and quads by casting one
primary ray per pixel, following mirror reflections up to a fixed depth and
averaging cone-jittered sample rays for soft reflections and anti-aliasing.

Subpackages:
    core: Rays, random sampling, render parameters, the tracing kernel and
        the host-side RayTracer
    geometry: Shape primitives and intersection algorithms
    scene: Scene collection, the device-side scene table and a demo scene
    camera: Pinhole camera with look-at construction
    preview: Conversion to 8-bit and PNG export
"""

__version__ = "0.1.0"
