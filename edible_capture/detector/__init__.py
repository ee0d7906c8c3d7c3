from edible_capture.detector.candidates import CandidateCollector, match_category
from edible_capture.detector.projection import project_bounds
from edible_capture.detector.selection import GreedySelector, compute_iou

__all__ = ["CandidateCollector", "GreedySelector", "compute_iou", "match_category", "project_bounds"]
