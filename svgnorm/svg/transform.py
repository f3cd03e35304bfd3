"""Affine matrices and SVG transform lists.

Matrix layout follows the SVG convention, six values (a, b, c, d, e, f):

    | a  c  e |
    | b  d  f |
    | 0  0  1 |

Composition is ``parent @ child``: the child's transform applies to a point
first, then the parent's.
"""

from __future__ import annotations

import enum
import logging
import math
import re
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from svgnorm.errors import GrammarError
from svgnorm.utils.numbers import NUMBER_RE, format_number

logger = logging.getLogger(__name__)

# Matrices closer than this to a reference value are treated as equal to it.
_EPS = 1e-9

_FUNCTION_RE = re.compile(r"\s*([A-Za-z]+)\s*\(([^)]*)\)\s*,?")


@dataclass(frozen=True)
class AffineMatrix:
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    # --- Construction ---

    @classmethod
    def identity(cls) -> AffineMatrix:
        return cls()

    @classmethod
    def translate(cls, tx: float, ty: float = 0.0) -> AffineMatrix:
        return cls(1.0, 0.0, 0.0, 1.0, tx, ty)

    @classmethod
    def scale(cls, sx: float, sy: float | None = None) -> AffineMatrix:
        return cls(sx, 0.0, 0.0, sx if sy is None else sy, 0.0, 0.0)

    @classmethod
    def rotate(cls, degrees: float, cx: float = 0.0, cy: float = 0.0) -> AffineMatrix:
        rad = math.radians(degrees)
        cos_a, sin_a = math.cos(rad), math.sin(rad)
        rotation = cls(cos_a, sin_a, -sin_a, cos_a, 0.0, 0.0)
        if cx == 0.0 and cy == 0.0:
            return rotation
        # translate(cx, cy) rotate(angle) translate(-cx, -cy)
        return cls.translate(cx, cy) @ rotation @ cls.translate(-cx, -cy)

    @classmethod
    def from_array(cls, array: NDArray[np.float64]) -> AffineMatrix:
        return cls(
            float(array[0, 0]),
            float(array[1, 0]),
            float(array[0, 1]),
            float(array[1, 1]),
            float(array[0, 2]),
            float(array[1, 2]),
        )

    def to_array(self) -> NDArray[np.float64]:
        return np.array(
            [
                [self.a, self.c, self.e],
                [self.b, self.d, self.f],
                [0.0, 0.0, 1.0],
            ],
            dtype=np.float64,
        )

    # --- Algebra ---

    def __matmul__(self, other: AffineMatrix) -> AffineMatrix:
        if not isinstance(other, AffineMatrix):
            return NotImplemented
        return AffineMatrix.from_array(self.to_array() @ other.to_array())

    def transform_point(self, x: float, y: float) -> tuple[float, float]:
        return (
            self.a * x + self.c * y + self.e,
            self.b * x + self.d * y + self.f,
        )

    def transform_points(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Transform an Nx2 array of points."""
        if len(points) == 0:
            return points
        linear = np.array([[self.a, self.c], [self.b, self.d]], dtype=np.float64)
        return points @ linear.T + np.array([self.e, self.f], dtype=np.float64)

    @property
    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    @property
    def scale_factors(self) -> tuple[float, float]:
        """Length of the transformed unit vectors along x and y."""
        return math.hypot(self.a, self.b), math.hypot(self.c, self.d)

    @property
    def mean_scale(self) -> float:
        """Uniform scale equivalent, used for lengths with no direction."""
        return math.sqrt(abs(self.determinant))

    # --- Shape predicates ---

    def is_close(self, other: AffineMatrix) -> bool:
        return all(
            abs(x - y) < _EPS
            for x, y in zip(
                (self.a, self.b, self.c, self.d, self.e, self.f),
                (other.a, other.b, other.c, other.d, other.e, other.f),
            )
        )

    @property
    def is_identity(self) -> bool:
        return self.is_translation and abs(self.e) < _EPS and abs(self.f) < _EPS

    @property
    def is_translation(self) -> bool:
        return (
            abs(self.a - 1.0) < _EPS
            and abs(self.d - 1.0) < _EPS
            and self.is_axis_aligned
        )

    @property
    def is_axis_aligned(self) -> bool:
        """No rotation or skew: x maps to x' only and y to y' only."""
        return abs(self.b) < _EPS and abs(self.c) < _EPS

    @property
    def is_similarity(self) -> bool:
        """Rotation, uniform scale, reflection and translation only."""
        rotating = abs(self.a - self.d) < _EPS and abs(self.b + self.c) < _EPS
        reflecting = abs(self.a + self.d) < _EPS and abs(self.b - self.c) < _EPS
        return (rotating or reflecting) and abs(self.determinant) > _EPS

    def to_svg(self) -> str:
        values = ",".join(format_number(v) for v in (self.a, self.b, self.c, self.d, self.e, self.f))
        return f"matrix({values})"


class TransformKind(enum.Enum):
    MATRIX = "matrix"
    TRANSLATE = "translate"
    SCALE = "scale"
    ROTATE = "rotate"
    SKEW_X = "skewX"
    SKEW_Y = "skewY"


# Accepted parameter counts per transform function.
_ARITY: dict[TransformKind, tuple[int, ...]] = {
    TransformKind.MATRIX: (6,),
    TransformKind.TRANSLATE: (1, 2),
    TransformKind.SCALE: (1, 2),
    TransformKind.ROTATE: (1, 3),
    TransformKind.SKEW_X: (1,),
    TransformKind.SKEW_Y: (1,),
}

_KIND_BY_NAME = {kind.value.lower(): kind for kind in TransformKind}


@dataclass(frozen=True)
class TransformOp:
    kind: TransformKind
    params: tuple[float, ...]

    @property
    def is_skew(self) -> bool:
        return self.kind in (TransformKind.SKEW_X, TransformKind.SKEW_Y)

    def to_matrix(self) -> AffineMatrix:
        p = self.params
        if self.kind is TransformKind.MATRIX:
            return AffineMatrix(*p)
        if self.kind is TransformKind.TRANSLATE:
            return AffineMatrix.translate(p[0], p[1] if len(p) > 1 else 0.0)
        if self.kind is TransformKind.SCALE:
            return AffineMatrix.scale(p[0], p[1] if len(p) > 1 else None)
        if self.kind is TransformKind.ROTATE:
            if len(p) == 3:
                return AffineMatrix.rotate(p[0], p[1], p[2])
            return AffineMatrix.rotate(p[0])
        raise ValueError(f"{self.kind.value} is not folded into matrices")

    def __str__(self) -> str:
        return f"{self.kind.value}({','.join(format_number(v) for v in self.params)})"


@dataclass
class TransformList:
    ops: list[TransformOp] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.ops)

    def __len__(self) -> int:
        return len(self.ops)

    def __str__(self) -> str:
        return " ".join(str(op) for op in self.ops)

    @property
    def has_skew(self) -> bool:
        return any(op.is_skew for op in self.ops)

    def to_matrix(self) -> AffineMatrix:
        return compose(self)


def parse_transform(text: str | None) -> TransformList:
    """Parse an SVG ``transform`` attribute value."""
    result = TransformList()
    if not text or not text.strip():
        return result

    pos = 0
    while pos < len(text):
        match = _FUNCTION_RE.match(text, pos)
        if match is None:
            if text[pos:].strip(" \t\r\n,"):
                raise GrammarError(f"Unreadable transform text at {text[pos:]!r}")
            break
        name, raw_params = match.group(1), match.group(2)
        kind = _KIND_BY_NAME.get(name.lower())
        if kind is None:
            raise GrammarError(f"Unknown transform function {name!r}")

        params = tuple(float(n) for n in NUMBER_RE.findall(raw_params))
        leftover = NUMBER_RE.sub("", raw_params).replace(",", "").strip()
        if leftover or len(params) not in _ARITY[kind]:
            raise GrammarError(f"Bad parameters for {name}: {raw_params.strip()!r}")

        result.ops.append(TransformOp(kind, params))
        pos = match.end()

    return result


def compose(*items: TransformList | AffineMatrix) -> AffineMatrix:
    """Reduce transform lists and/or matrices, outermost first, to one matrix.

    ``compose(ops)`` folds a transform list; ``compose(parent, child)``
    pre-multiplies the child by the parent. Skews are not folded.
    """
    result = AffineMatrix.identity()
    for item in items:
        if isinstance(item, AffineMatrix):
            result = result @ item
            continue
        for op in item.ops:
            if op.is_skew:
                logger.debug("Skipping %s while composing", op)
                continue
            result = result @ op.to_matrix()
    return result


def transform_point(matrix: AffineMatrix, x: float, y: float) -> tuple[float, float]:
    return matrix.transform_point(x, y)
