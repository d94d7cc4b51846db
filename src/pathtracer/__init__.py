"""Taichi path tracer for scenes made of spheres.

This package renders sphere scenes with stochastic ray tracing on the CPU or
GPU through Taichi, with support for:
- Lambertian, metal and dielectric materials
- Thin-lens camera with depth of field
- Deterministic per-pixel random number streams
- A procedural reference scene

Subpackages:
    core: Vector algebra, random numbers, integrator and rendering driver
    geometry: Sphere primitive and intersection
    materials: Material records and scattering functions
    scene: Scene container, field storage and the reference scene builder
    camera: Thin-lens camera with ray generation
    preview: Image export utilities
"""

__version__ = "0.1.0"
