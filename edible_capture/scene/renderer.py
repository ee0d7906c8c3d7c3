"""
Box Silhouette Renderer

Stand-in for an engine render pass: every object in front of the camera is
drawn as the filled convex hull of its 8 projected bound corners, painted far
to near so closer objects occlude farther ones. Output is a BGR uint8 frame.
"""

import cv2
import numpy as np
import supervision as sv

from config.settings import settings
from edible_capture.detector.candidates import match_category
from edible_capture.utils.schemas import SceneObject

BACKGROUND_BGR = (48, 44, 40)
UNMATCHED_BGR = (140, 140, 140)
OUTLINE_BGR = (20, 20, 20)


class BoxSilhouetteRenderer:
    """Flat-shaded silhouettes of object bounds."""

    def __init__(self, categories: list[str] | None = None, palette: sv.ColorPalette | None = None):
        self.categories = categories if categories is not None else settings.categories
        self.palette = palette or sv.ColorPalette.DEFAULT

    def _color_for(self, obj: SceneObject) -> tuple[int, int, int]:
        category = match_category(obj.name, self.categories)
        if category is None:
            return UNMATCHED_BGR
        return self.palette.by_idx(self.categories.index(category)).as_bgr()

    def render(self, camera, objects: list[SceneObject], width: int, height: int) -> np.ndarray:
        frame = np.empty((height, width, 3), dtype=np.uint8)
        frame[:] = BACKGROUND_BGR

        drawable = []
        for obj in objects:
            projected = camera.world_to_viewport(obj.bounds.corners())
            # Skip anything crossing the camera plane, the hull would be garbage
            if np.any(projected[:, 2] <= 0):
                continue
            depth = float(np.linalg.norm(np.asarray(obj.bounds.center) - camera.position))
            drawable.append((depth, obj, projected))

        drawable.sort(key=lambda item: item[0], reverse=True)

        for _, obj, projected in drawable:
            px = projected[:, 0] * width
            py = (1.0 - projected[:, 1]) * height
            pts = np.stack([px, py], axis=1)
            # Keep far off-screen corners within int32 range for OpenCV
            pts = np.clip(pts, -4 * max(width, height), 4 * max(width, height))
            hull = cv2.convexHull(pts.astype(np.int32))
            cv2.fillConvexPoly(frame, hull, self._color_for(obj), cv2.LINE_AA)
            cv2.polylines(frame, [hull], True, OUTLINE_BGR, 1, cv2.LINE_AA)

        return frame
