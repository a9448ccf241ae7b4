"""
Nether Render - Vector Math
Immutable 3- and 4-component vectors for the scene shader.

Components are either plain floats or equally-shaped numpy float64 arrays.
Every operation is element-wise, so a vector of (H, W) arrays behaves like a
whole frame of independent per-pixel vectors.
"""

from dataclasses import dataclass
from typing import Union

import numpy as np

from nether.errors import InvalidOperation

Scalar = Union[float, np.ndarray]


def _require(other, op: str):
    if other is None:
        raise InvalidOperation(f"{op}: other must not be None")
    return other


def _check_divisor(s, op: str):
    if np.ndim(s) == 0 and s == 0.0:
        raise InvalidOperation(f"{op}: divisor must not be zero")


# ═══════════════════════════════════════════════════════════════════════════════
# VEC3
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Vec3:
    x: Scalar
    y: Scalar
    z: Scalar

    @classmethod
    def splat(cls, v: Scalar) -> "Vec3":
        return cls(v, v, v)

    def add(self, o: "Vec3") -> "Vec3":
        _require(o, "Vec3.add")
        return Vec3(self.x + o.x, self.y + o.y, self.z + o.z)

    def sub(self, o: "Vec3") -> "Vec3":
        _require(o, "Vec3.sub")
        return Vec3(self.x - o.x, self.y - o.y, self.z - o.z)

    def mul(self, s) -> "Vec3":
        """Scalar multiply, or component-wise multiply when given a Vec3."""
        _require(s, "Vec3.mul")
        if isinstance(s, Vec3):
            return Vec3(self.x * s.x, self.y * s.y, self.z * s.z)
        return Vec3(self.x * s, self.y * s, self.z * s)

    def div(self, s: float) -> "Vec3":
        _require(s, "Vec3.div")
        _check_divisor(s, "Vec3.div")
        return Vec3(self.x / s, self.y / s, self.z / s)

    def round(self) -> "Vec3":
        # rint: halves go to the even neighbour
        return Vec3(np.rint(self.x), np.rint(self.y), np.rint(self.z))

    def with_z(self, z: Scalar) -> "Vec3":
        return Vec3(self.x, self.y, z)

    # ── Swizzles ──
    def xyy(self) -> "Vec3":
        return Vec3(self.x, self.y, self.y)

    def zzx(self) -> "Vec3":
        return Vec3(self.z, self.z, self.x)

    def length(self) -> Scalar:
        return np.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalize(self) -> "Vec3":
        """Unit vector in the same direction; the zero vector maps to itself."""
        length = self.length()
        if np.ndim(length) == 0:
            if length == 0.0:
                return Vec3(0.0, 0.0, 0.0)
            return self.div(length)
        zero = length == 0.0
        safe = np.where(zero, 1.0, length)
        return Vec3(
            np.where(zero, 0.0, self.x / safe),
            np.where(zero, 0.0, self.y / safe),
            np.where(zero, 0.0, self.z / safe),
        )

    def cos(self) -> "Vec3":
        return Vec3(np.cos(self.x), np.cos(self.y), np.cos(self.z))

    def tanh(self) -> "Vec3":
        return Vec3(np.tanh(self.x), np.tanh(self.y), np.tanh(self.z))

    def __add__(self, o):
        return self.add(o)

    def __sub__(self, o):
        return self.sub(o)

    def __mul__(self, s):
        return self.mul(s)

    def __truediv__(self, s):
        return self.div(s)


# ═══════════════════════════════════════════════════════════════════════════════
# VEC4
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Vec4:
    x: Scalar
    y: Scalar
    z: Scalar
    w: Scalar

    @classmethod
    def zero(cls) -> "Vec4":
        return cls(0.0, 0.0, 0.0, 0.0)

    def add(self, o: "Vec4") -> "Vec4":
        _require(o, "Vec4.add")
        return Vec4(self.x + o.x, self.y + o.y, self.z + o.z, self.w + o.w)

    def sub(self, o: "Vec4") -> "Vec4":
        _require(o, "Vec4.sub")
        return Vec4(self.x - o.x, self.y - o.y, self.z - o.z, self.w - o.w)

    def mul(self, s) -> "Vec4":
        _require(s, "Vec4.mul")
        if isinstance(s, Vec4):
            return Vec4(self.x * s.x, self.y * s.y, self.z * s.z, self.w * s.w)
        return Vec4(self.x * s, self.y * s, self.z * s, self.w * s)

    def div(self, s: float) -> "Vec4":
        _require(s, "Vec4.div")
        _check_divisor(s, "Vec4.div")
        return Vec4(self.x / s, self.y / s, self.z / s, self.w / s)

    def round(self) -> "Vec4":
        return Vec4(np.rint(self.x), np.rint(self.y), np.rint(self.z), np.rint(self.w))

    def xyz(self) -> Vec3:
        return Vec3(self.x, self.y, self.z)

    def cos(self) -> "Vec4":
        return Vec4(np.cos(self.x), np.cos(self.y), np.cos(self.z), np.cos(self.w))

    def tanh(self) -> "Vec4":
        return Vec4(np.tanh(self.x), np.tanh(self.y), np.tanh(self.z), np.tanh(self.w))

    def __add__(self, o):
        return self.add(o)

    def __sub__(self, o):
        return self.sub(o)

    def __mul__(self, s):
        return self.mul(s)

    def __truediv__(self, s):
        return self.div(s)
