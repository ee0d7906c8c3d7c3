"""
Candidate Collection

Turns the raw scene object list into the ranked candidate list for one camera:
1. Category match: lower-cased name contains a keyword (first keyword in list order wins)
2. Visibility: bounds center in front of the camera and inside the viewport margin
3. Ranking: ascending Euclidean distance from the camera (stable for ties)

Note: matching is substring-based, so "ChipsBottle" is "chips" because "chips"
comes before "bottle" in the category list. Reordering the list changes labels.
"""

import numpy as np
from loguru import logger

from config.settings import build_class_map, normalize_categories, settings
from edible_capture.detector.projection import project_point
from edible_capture.utils.schemas import Candidate, SceneObject


def match_category(name: str, categories: list[str]) -> str | None:
    """Return the first keyword contained in the lower-cased name, or None."""
    name_lower = name.lower()
    return next((keyword for keyword in categories if keyword in name_lower), None)


def is_in_view(viewport_point: tuple[float, float, float], margin: float) -> bool:
    """Depth > 0 and x, y inside [margin, 1 - margin]."""
    x, y, z = viewport_point
    if z <= 0:
        return False
    if x < margin or x > 1 - margin:
        return False
    if y < margin or y > 1 - margin:
        return False
    return True


class CandidateCollector:
    """Filters and ranks scene objects for a camera."""

    def __init__(
        self,
        categories: list[str] | None = None,
        viewport_margin: float | None = None,
    ):
        self.categories = normalize_categories(categories) if categories is not None else list(settings.categories)
        self.class_map = build_class_map(self.categories)
        self.viewport_margin = viewport_margin if viewport_margin is not None else settings.viewport_margin

    def collect(self, camera, objects: list[SceneObject]) -> list[Candidate]:
        """
        Build the ranked candidate list.

        Args:
            camera: object exposing name, position and world_to_viewport
            objects: every renderable object in the scene

        Returns:
            Candidates sorted closest-first; empty when nothing qualifies
        """
        candidates = []
        camera_position = np.asarray(camera.position, dtype=np.float64)

        for obj in objects:
            category = match_category(obj.name, self.categories)
            if category is None:
                continue

            center = obj.bounds.center
            if not is_in_view(project_point(camera, center), self.viewport_margin):
                continue

            distance = float(np.linalg.norm(camera_position - np.asarray(center)))
            candidates.append(
                Candidate(
                    obj=obj,
                    category=category,
                    class_id=self.class_map[category],
                    distance=distance,
                )
            )

        # sorted() is stable: equal distances keep scene enumeration order
        ranked = sorted(candidates, key=lambda c: c.distance)
        logger.debug(
            f"[{camera.name}] {len(ranked)} candidates out of {len(objects)} scene objects"
        )
        return ranked
