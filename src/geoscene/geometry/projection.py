"""
CONTRACT: inline
ROLE: OpenGL-style projection matrix builders.

INPUTS:
  - frustum bounds / field of view
OUTPUTS:
  - 4x4 numpy matrices; `flatten_row_major` gives the 16-float form

FAILURE MODES:
  - degenerate bounds (l == r, near == far, fovy == 0, aspect == 0) -> inf/nan
    entries, no exception

CONTRACT DETAILS:
# Projection

- Same conventions as glMatrix `mat4.ortho` / `mat4.perspective`: right
  handed eye space, depth mapped to [-1, 1].
- Matrices are stored mathematically (translation in the last column) and
  flattened row by row.
- Camera values are not checked for plausibility. Divisions by zero follow
  IEEE 754 and land in the matrix as inf or nan.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np


Matrix16 = Tuple[float, ...]


def deg_to_rad(degrees: float) -> float:
    return degrees * math.pi / 180.0


def ortho_matrix(left: float, right: float, bottom: float, top: float, near: float, far: float) -> np.ndarray:
    left, right, bottom, top, near, far = np.asarray([left, right, bottom, top, near, far], dtype=np.float64)
    m = np.zeros((4, 4), dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        lr = 1.0 / (left - right)
        bt = 1.0 / (bottom - top)
        nf = 1.0 / (near - far)
        m[0, 0] = -2.0 * lr
        m[1, 1] = -2.0 * bt
        m[2, 2] = 2.0 * nf
        m[0, 3] = (left + right) * lr
        m[1, 3] = (top + bottom) * bt
        m[2, 3] = (far + near) * nf
    m[3, 3] = 1.0
    return m


def perspective_matrix(fovy_rad: float, aspect: float, near: float, far: float) -> np.ndarray:
    fovy_rad, aspect, near, far = np.asarray([fovy_rad, aspect, near, far], dtype=np.float64)
    m = np.zeros((4, 4), dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        f = 1.0 / np.tan(fovy_rad / 2.0)
        nf = 1.0 / (near - far)
        m[0, 0] = f / aspect
        m[1, 1] = f
        m[2, 2] = (far + near) * nf
        m[2, 3] = 2.0 * far * near * nf
    m[3, 2] = -1.0
    return m


def flatten_row_major(matrix: np.ndarray) -> Matrix16:
    return tuple(float(v) for v in np.asarray(matrix, dtype=np.float64).reshape(16))


def build_ortho(left: float, right: float, bottom: float, top: float, near: float, far: float) -> Matrix16:
    return flatten_row_major(ortho_matrix(left, right, bottom, top, near, far))


def build_perspective(fovy_rad: float, aspect: float, near: float, far: float) -> Matrix16:
    return flatten_row_major(perspective_matrix(fovy_rad, aspect, near, far))
