"""
Pydantic schemas for data flowing through the capture pipeline.
"""

import numpy as np
from pydantic import BaseModel
from typing import Literal, Optional

Vec3 = tuple[float, float, float]


class Bounds3D(BaseModel):
    """World-space axis-aligned bounding volume."""
    min: Vec3
    max: Vec3

    @property
    def center(self) -> Vec3:
        return (
            (self.min[0] + self.max[0]) / 2,
            (self.min[1] + self.max[1]) / 2,
            (self.min[2] + self.max[2]) / 2,
        )

    def corners(self) -> np.ndarray:
        """All 8 corners as an (8, 3) array."""
        (x0, y0, z0), (x1, y1, z1) = self.min, self.max
        return np.array([
            [x0, y0, z0],
            [x1, y0, z0],
            [x0, y1, z0],
            [x0, y0, z1],
            [x1, y1, z0],
            [x1, y0, z1],
            [x0, y1, z1],
            [x1, y1, z1],
        ], dtype=np.float64)


class SceneObject(BaseModel):
    """A renderable object owned by the scene host."""
    id: int
    name: str
    bounds: Bounds3D


class ProjectedBox(BaseModel):
    """
    Normalized image-space rectangle.

    Uses viewport convention: origin bottom-left, y grows upward.
    """
    x_min: float
    y_min: float
    width: float
    height: float

    @property
    def x_max(self) -> float:
        return self.x_min + self.width

    @property
    def y_max(self) -> float:
        return self.y_min + self.height

    @property
    def center(self) -> tuple[float, float]:
        return (self.x_min + self.width / 2, self.y_min + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_yolo(self) -> tuple[float, float, float, float]:
        """(x_center, y_center, width, height) with a top-left origin."""
        cx, cy = self.center
        return (cx, 1.0 - cy, self.width, self.height)

    def to_pixel_xyxy(self, image_width: int, image_height: int) -> tuple[float, float, float, float]:
        """Top-left-origin pixel rectangle [x1, y1, x2, y2]."""
        x1 = self.x_min * image_width
        y1 = (1.0 - self.y_max) * image_height
        return (x1, y1, x1 + self.width * image_width, y1 + self.height * image_height)


class Candidate(BaseModel):
    """A category-matched object visible to one camera."""
    obj: SceneObject
    category: str
    class_id: int
    distance: float

    @property
    def bounds(self) -> Bounds3D:
        return self.obj.bounds


class Detection(BaseModel):
    """One accepted annotation."""
    candidate: Candidate
    box: ProjectedBox

    @property
    def class_id(self) -> int:
        return self.candidate.class_id

    @property
    def category(self) -> str:
        return self.candidate.category


class CaptureResult(BaseModel):
    """Outcome of running the pipeline for a single camera."""
    camera_name: str
    status: Literal["exported", "no_candidates", "no_selection"]
    num_candidates: int = 0
    num_labels: int = 0
    frame_index: Optional[int] = None
    label_path: Optional[str] = None
    image_path: Optional[str] = None
