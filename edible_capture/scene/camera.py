"""
Perspective camera with a world-to-viewport mapping.

Viewport convention: x, y in [0, 1] with the origin at the bottom-left of the
frame, z = depth along the viewing direction in world units (<= 0 means the
point is behind the camera).
"""

import numpy as np

DEFAULT_UP = np.array([0.0, 1.0, 0.0], dtype=np.float64)
DEFAULT_FOV = 60.0
_MIN_DEPTH = 1e-9


class PinholeCamera:
    """Look-at pinhole camera."""

    def __init__(
        self,
        name: str,
        position,
        look_at,
        up=None,
        fov: float = DEFAULT_FOV,
        aspect: float = 16 / 9,
    ):
        self.name = name
        self.position = np.asarray(position, dtype=np.float64)
        self.target = np.asarray(look_at, dtype=np.float64)
        self.fov = float(fov)
        self.aspect = float(aspect)

        forward = self.target - self.position
        norm = np.linalg.norm(forward)
        if norm == 0:
            raise ValueError(f"Camera '{name}': look_at coincides with position")
        forward /= norm

        world_up = DEFAULT_UP if up is None else np.asarray(up, dtype=np.float64)
        right = np.cross(forward, world_up)
        if np.linalg.norm(right) < 1e-9:
            raise ValueError(f"Camera '{name}': up vector is parallel to view direction")
        right /= np.linalg.norm(right)

        self.forward = forward
        self.right = right
        self.up = np.cross(right, forward)
        self._tan_half_fov = np.tan(np.radians(self.fov) / 2)

    def world_to_viewport(self, points) -> np.ndarray:
        """
        Map world points to viewport space.

        Args:
            points: (3,) or (N, 3) world coordinates

        Returns:
            (N, 3) array of [x, y, depth]
        """
        pts = np.atleast_2d(np.asarray(points, dtype=np.float64))
        rel = pts - self.position

        depth = rel @ self.forward
        # Points on the camera plane would divide by zero
        safe = np.where(np.abs(depth) < _MIN_DEPTH, _MIN_DEPTH, depth)

        ndc_x = (rel @ self.right) / (safe * self._tan_half_fov * self.aspect)
        ndc_y = (rel @ self.up) / (safe * self._tan_half_fov)

        return np.stack([(ndc_x + 1) / 2, (ndc_y + 1) / 2, depth], axis=1)

    def __repr__(self) -> str:
        return (
            f"PinholeCamera(name={self.name!r}, position={self.position.tolist()}, "
            f"look_at={self.target.tolist()}, fov={self.fov})"
        )
