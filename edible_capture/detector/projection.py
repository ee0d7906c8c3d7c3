"""
3D -> 2D projection of object bounds.

A box's screen footprint is bounded by projecting all 8 corners, not just the
min/max corners: once the camera is rotated or perspective kicks in, the two
extreme 3D corners no longer map to the extreme 2D ones.
"""

import numpy as np

from edible_capture.utils.schemas import Bounds3D, ProjectedBox


def project_bounds(camera, bounds: Bounds3D) -> ProjectedBox:
    """
    Project a world-space AABB to a normalized viewport rectangle.

    Corners behind the camera are not handled here; depth culling happens on
    the bounds center in the candidate collector. A large object straddling
    the camera plane can therefore produce a degenerate rectangle.

    Args:
        camera: object exposing world_to_viewport(points) -> (N, 3)
        bounds: world-space bounding volume

    Returns:
        ProjectedBox in viewport space (origin bottom-left)
    """
    projected = np.asarray(camera.world_to_viewport(bounds.corners()))

    x_min = float(projected[:, 0].min())
    x_max = float(projected[:, 0].max())
    y_min = float(projected[:, 1].min())
    y_max = float(projected[:, 1].max())

    return ProjectedBox(x_min=x_min, y_min=y_min, width=x_max - x_min, height=y_max - y_min)


def project_point(camera, point) -> tuple[float, float, float]:
    """Project a single world point, returning (x, y, depth)."""
    x, y, z = np.asarray(camera.world_to_viewport(np.asarray(point, dtype=np.float64)))[0]
    return float(x), float(y), float(z)
