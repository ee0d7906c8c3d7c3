"""
Greedy Box Selection

Picks up to N annotations per frame from the ranked candidates:
1. Diversity pass: closest-first, accept a box only if its IoU with every
   accepted box is <= iou_threshold. Rejected candidates are not revisited.
2. Backfill pass (only if still short of N): restart from the closest, accept
   anything that is not a near-identical duplicate (IoU < duplicate threshold)
   of an accepted box.

Both passes share the accepted list, so backfilled boxes are checked against
diversity picks and earlier backfills alike.
"""

from loguru import logger

from config.settings import settings
from edible_capture.detector.projection import project_bounds
from edible_capture.utils.schemas import Candidate, Detection, ProjectedBox


def compute_iou(box_a: ProjectedBox, box_b: ProjectedBox) -> float:
    """
    Compute IoU between two normalized rectangles.

    Args:
        box_a: ProjectedBox
        box_b: ProjectedBox
    """
    x1 = max(box_a.x_min, box_b.x_min)
    y1 = max(box_a.y_min, box_b.y_min)
    x2 = min(box_a.x_max, box_b.x_max)
    y2 = min(box_a.y_max, box_b.y_max)

    intersection = max(0.0, x2 - x1) * max(0.0, y2 - y1)
    union = box_a.area + box_b.area - intersection

    return intersection / union if union > 0 else 0.0


class GreedySelector:
    """
    Two-pass greedy selection over closest-first candidates.

    Logic:
    - Prefer well-separated boxes first (diversity)
    - Then fill up to the target count, skipping only near-duplicates
    - Each scene object is accepted at most once
    """

    def __init__(
        self,
        max_detections: int | None = None,
        iou_threshold: float | None = None,
        duplicate_iou_threshold: float | None = None,
    ):
        self.max_detections = max_detections if max_detections is not None else settings.num_objects_to_detect
        self.iou_threshold = iou_threshold if iou_threshold is not None else settings.iou_threshold
        self.duplicate_iou_threshold = (
            duplicate_iou_threshold if duplicate_iou_threshold is not None
            else settings.duplicate_iou_threshold
        )

        self._last_first_pass = 0
        self._last_backfill = 0

        logger.debug(
            f"GreedySelector: max_detections={self.max_detections}, "
            f"iou_threshold={self.iou_threshold}, "
            f"duplicate_iou_threshold={self.duplicate_iou_threshold}"
        )

    def select(self, camera, candidates: list[Candidate]) -> list[Detection]:
        """
        Select the annotations for one camera.

        Args:
            camera: object exposing world_to_viewport
            candidates: ranked candidate list (closest first)

        Returns:
            Accepted detections in acceptance order, at most max_detections long
        """
        accepted: list[Detection] = []
        accepted_ids: set[int] = set()

        # Pass 1: diversity
        for candidate in candidates:
            if len(accepted) >= self.max_detections:
                break

            box = project_bounds(camera, candidate.bounds)
            if any(compute_iou(d.box, box) > self.iou_threshold for d in accepted):
                continue

            accepted.append(Detection(candidate=candidate, box=box))
            accepted_ids.add(candidate.obj.id)

        first_pass = len(accepted)

        # Pass 2: backfill
        for candidate in candidates:
            if len(accepted) >= self.max_detections:
                break
            if candidate.obj.id in accepted_ids:
                continue

            box = project_bounds(camera, candidate.bounds)
            if any(compute_iou(d.box, box) >= self.duplicate_iou_threshold for d in accepted):
                continue

            accepted.append(Detection(candidate=candidate, box=box))
            accepted_ids.add(candidate.obj.id)

        self._last_first_pass = first_pass
        self._last_backfill = len(accepted) - first_pass

        return accepted

    @property
    def stats(self) -> dict:
        """Split of the most recent selection between the two passes."""
        return {
            "first_pass": self._last_first_pass,
            "backfill": self._last_backfill,
        }
