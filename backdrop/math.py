# backdrop/math.py
import math

import numpy as np


def create_perspective_projection(
    fov_deg: float, aspect: float, near: float, far: float
) -> np.ndarray:
    """
    Creates a standard OpenGL Perspective Projection Matrix.
    fov_deg: Field of View in Degrees (Vertical)
    aspect: Width / Height
    near: Distance to near plane
    far: Distance to far plane
    """
    tan_half_fov = math.tan(math.radians(fov_deg) / 2.0)

    # Avoid division by zero
    if tan_half_fov == 0:
        tan_half_fov = 0.001
    if near == far:
        far += 0.001
    if aspect == 0:
        aspect = 1.0

    mat = np.zeros((4, 4), dtype=np.float32)
    mat[0, 0] = 1.0 / (aspect * tan_half_fov)
    mat[1, 1] = 1.0 / tan_half_fov
    mat[2, 2] = (far + near) / (near - far)
    mat[2, 3] = (2.0 * far * near) / (near - far)
    mat[3, 2] = -1.0

    return mat


def create_translation(x: float, y: float, z: float) -> np.ndarray:
    mat = np.identity(4, dtype=np.float32)
    mat[0, 3] = x
    mat[1, 3] = y
    mat[2, 3] = z
    return mat


def create_rotation_xy(rx: float, ry: float) -> np.ndarray:
    """Rotation about X then Y (Euler XYZ order with z = 0)."""
    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)

    rot_x = np.array(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, cx, -sx, 0.0],
            [0.0, sx, cx, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=np.float32,
    )
    rot_y = np.array(
        [
            [cy, 0.0, sy, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [-sy, 0.0, cy, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=np.float32,
    )
    return rot_x @ rot_y


def point_scale(fov_deg: float, viewport_height: int) -> float:
    """Pixels per world unit at distance 1, for size-attenuated points."""
    tan_half_fov = math.tan(math.radians(fov_deg) / 2.0) or 0.001
    return viewport_height * 0.5 / tan_half_fov
