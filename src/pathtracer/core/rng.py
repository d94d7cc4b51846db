"""Deterministic xorshift128 random number generator.

Every stochastic choice in the renderer (pixel jitter, lens samples, diffuse
bounces, fuzzy reflections, reflect-or-refract decisions) is drawn from an
explicit generator state instead of Taichi's global ``ti.random``. Each pixel
task seeds its own state from its pixel index, so pixels never share mutable
random state and a render is reproducible bit for bit from its seed.

The state is four 32-bit words packed in a ``uvec4``. Taichi functions cannot
mutate their arguments, so every function takes the state and returns the
advanced state together with the drawn value:

    >>> state = rng_seed(seed_lo, seed_hi)
    >>> state, x = rng_next_float(state)
    >>> state, p = random_in_unit_sphere(state)
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3
uvec4 = tm.uvec4

# Multiplier used to spread a seed over the four state words
SEED_MULTIPLIER = 1812433253

# Trials before a rejection sampler gives up and returns the zero vector
MAX_REJECTION_TRIALS = 100

# 2^-24, maps the top 24 bits of a draw into [0, 1)
_FLOAT_SCALE = 1.0 / 16777216.0

_U32_MASK = 0xFFFFFFFF


def split_seed(seed: int) -> tuple[int, int]:
    """Split a 64-bit seed into (low, high) 32-bit words for kernel arguments.

    Args:
        seed: Non-negative integer below 2**64.

    Returns:
        Tuple of (low_word, high_word).

    Raises:
        ValueError: If the seed does not fit in an unsigned 64-bit integer.
    """
    if seed < 0 or seed >= 1 << 64:
        raise ValueError(f"Seed {seed} does not fit in an unsigned 64-bit integer")
    return seed & _U32_MASK, (seed >> 32) & _U32_MASK


@ti.func
def _mix_word(prev: ti.u32, increment: ti.i32):
    """One step of the seed spreading sequence."""
    return (
        ti.cast(SEED_MULTIPLIER, ti.u32) * (prev ^ ti.bit_shr(prev, 30))
        + ti.cast(increment, ti.u32)
    )


@ti.func
def rng_seed(seed_lo: ti.u32, seed_hi: ti.u32) -> uvec4:
    """Build a generator state from a 64-bit seed given as two words.

    The state is never all zero: the last two words carry the increments
    2 and 3 after the first word and the high word are mixed in.

    Args:
        seed_lo: Low 32 bits of the seed.
        seed_hi: High 32 bits of the seed.

    Returns:
        The initial generator state.
    """
    x = ti.cast(seed_lo, ti.u32)
    y = _mix_word(x, 1) ^ ti.cast(seed_hi, ti.u32)
    z = _mix_word(y, 2)
    w = _mix_word(z, 3)
    return uvec4(x, y, z, w)


@ti.func
def rng_seed_task(seed_lo: ti.u32, seed_hi: ti.u32, task_index: ti.i32) -> uvec4:
    """Seed the generator of an independent task (e.g. one pixel).

    The task index is added to the low word, wrapping at 2^32.
    """
    return rng_seed(ti.cast(seed_lo, ti.u32) + ti.cast(task_index, ti.u32), seed_hi)


@ti.func
def rng_next_u32(state: uvec4):
    """Advance the generator and draw an unsigned 32-bit value.

    Returns:
        A tuple of (new_state, value).
    """
    t = state.x ^ (state.x << 11)
    w = state.w
    w = w ^ ti.bit_shr(w, 19) ^ (t ^ ti.bit_shr(t, 8))
    return uvec4(state.y, state.z, state.w, w), w


@ti.func
def rng_next_float(state: uvec4):
    """Draw a uniform float in [0, 1).

    Uses the top 24 bits of the next draw, so the result is exactly
    representable in f32 and never rounds up to 1.0.

    Returns:
        A tuple of (new_state, value).
    """
    new_state, bits = rng_next_u32(state)
    value = ti.cast(ti.bit_shr(bits, 8), ti.f32) * _FLOAT_SCALE
    return new_state, value


@ti.func
def random_in_unit_sphere(state: uvec4):
    """Rejection-sample a point inside the unit sphere.

    Draws points in the cube [-1, 1]^3 until one has squared length <= 1.
    Each trial succeeds with probability pi/6; after MAX_REJECTION_TRIALS
    failures the zero vector is returned.

    Returns:
        A tuple of (new_state, point).
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_TRIALS):
        if found == 0:
            s, rx = rng_next_float(s)
            s, ry = rng_next_float(s)
            s, rz = rng_next_float(s)
            p = 2.0 * vec3(rx, ry, rz) - vec3(1.0, 1.0, 1.0)
            if tm.dot(p, p) <= 1.0:
                found = 1
    if found == 0:
        p = vec3(0.0, 0.0, 0.0)
    return s, p


@ti.func
def random_in_unit_disk(state: uvec4):
    """Rejection-sample a point inside the unit disk in the xy-plane.

    Each trial succeeds with probability pi/4; after MAX_REJECTION_TRIALS
    failures the zero vector is returned.

    Returns:
        A tuple of (new_state, point) with point.z == 0.
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_TRIALS):
        if found == 0:
            s, rx = rng_next_float(s)
            s, ry = rng_next_float(s)
            p = vec3(2.0 * rx - 1.0, 2.0 * ry - 1.0, 0.0)
            if p.x * p.x + p.y * p.y <= 1.0:
                found = 1
    if found == 0:
        p = vec3(0.0, 0.0, 0.0)
    return s, p
