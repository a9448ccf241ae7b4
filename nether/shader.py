"""
Nether Render - Scene Shader
The hard-coded "nether" scene: a raymarch-like glow accumulation over a
coarsely quantized, cosine-folded domain.

shade() accepts scalar coordinates for a single pixel or numpy arrays for a
whole grid. Both paths run the same float64 operations in the same order.
"""

from typing import Tuple

import numpy as np

from nether.vector import Scalar, Vec3, Vec4

# ── Scene constants ──
MARCH_STEPS = 60
FOLD_STEPS = 9
GRID_CELL = 0.1
FOLD_GAIN = 0.2
WALL_OFFSET = 3.0
DISTANCE_SCALE = 20.0
GLOW = (19.0, 1.0, 1.0)
EXPOSURE = 700000.0


def shade(u: Scalar, v: Scalar, time: float) -> Vec4:
    """
    Shade pixel-center coordinates (u, v) in [0, 1) at the given time.

    Returns the tone-mapped Vec4; x, y, z are the color in (-1, 1).
    Deterministic: the same inputs always produce bit-identical output.
    A distance estimate of exactly zero is not guarded; its infinite glow
    saturates to 1 and any NaN it produces becomes black in color_to_bytes().
    """
    fc = Vec3(u, v, 0.0)
    r = Vec3(1.0, 1.0, 1.0)

    # The ray direction is independent of the march, only its length grows.
    ray = fc.mul(2.0).sub(r.xyy()).normalize()

    o = Vec4.zero()
    z = 0.0

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        for _ in range(MARCH_STEPS):
            p = ray.mul(z)
            p = p.with_z(p.z - time)
            p = p.div(GRID_CELL).round().mul(GRID_CELL)

            for k in range(1, FOLD_STEPS + 1):
                folded = p.mul(float(k)).add(Vec3.splat(z)).cos()
                p = p.add(folded.zzx().mul(FOLD_GAIN))

            d = np.abs(np.abs(p.y) - WALL_OFFSET) / DISTANCE_SCALE
            z = z + d

            inv = 1.0 / (d * d)
            o = o.add(Vec4(GLOW[0], z, GLOW[1], GLOW[2]).mul(inv))

        return o.div(EXPOSURE).tanh()


# ═══════════════════════════════════════════════════════════════════════════════
# COLOR MAPPING
# ═══════════════════════════════════════════════════════════════════════════════

def channel_to_bytes(c) -> np.ndarray:
    """Map shader output in (-1, 1) to bytes: round(clamp((c+1)/2, 0, 1) * 255).

    Halves round up. Infinities clamp to 0/255 and NaN maps to 0.
    """
    c = np.asarray(c, dtype=np.float64)
    with np.errstate(invalid="ignore"):
        scaled = np.clip((c + 1.0) * 0.5, 0.0, 1.0)
    scaled = np.where(np.isnan(scaled), 0.0, scaled)
    return np.floor(scaled * 255.0 + 0.5).astype(np.uint8)


def to_byte(c: float) -> int:
    return int(channel_to_bytes(c))


def color_to_bytes(color: Vec4) -> np.ndarray:
    """Stack the first three components into an (..., 3) uint8 RGB array."""
    rgb = np.stack(np.broadcast_arrays(color.x, color.y, color.z), axis=-1)
    return channel_to_bytes(rgb)


def shade_rgb(u: float, v: float, time: float) -> Tuple[int, int, int]:
    """Byte color for a single pixel."""
    r, g, b = color_to_bytes(shade(u, v, time))
    return int(r), int(g), int(b)
