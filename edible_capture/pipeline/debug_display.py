"""
Debug Display Module: Accepted Box Overlay

Keeps the boxes accepted for the current camera in pixel space (top-left
origin) together with their category labels, and draws them over a rendered
frame. State is cleared at the start of every camera.

Usage:
    uv run python -m edible_capture.pipeline.main --scene scene.json --display
    uv run python -m edible_capture.pipeline.main --scene scene.json --save-overlay
"""

import cv2
import numpy as np
import supervision as sv

from edible_capture.utils.schemas import Detection


# ── Colour Palette (BGR) ────────────────────────────────────────────
CLR_WHITE = (255, 255, 255)
CLR_DARK_BG = (30, 30, 30)
CLR_YELLOW = (0, 230, 255)        # yellow - info
CLR_LIGHT_GREY = (200, 200, 200)


class DebugDisplay:
    """Per-camera overlay of accepted detections."""

    def __init__(self, image_width: int, image_height: int):
        self.image_width = image_width
        self.image_height = image_height
        self.camera_name = ""
        self.boxes: list[tuple[float, float, float, float]] = []
        self.labels: list[str] = []
        self.class_ids: list[int] = []

        self.box_annotator = sv.BoxAnnotator(thickness=2)
        self.label_annotator = sv.LabelAnnotator(text_scale=0.5, text_thickness=1)

    def reset(self, camera_name: str = ""):
        """Forget the previous camera's boxes."""
        self.camera_name = camera_name
        self.boxes.clear()
        self.labels.clear()
        self.class_ids.clear()

    def add(self, detection: Detection):
        """Record an accepted detection as a pixel rectangle."""
        self.boxes.append(detection.box.to_pixel_xyxy(self.image_width, self.image_height))
        self.labels.append(detection.category)
        self.class_ids.append(detection.class_id)

    def as_detections(self) -> sv.Detections:
        if not self.boxes:
            return sv.Detections.empty()
        return sv.Detections(
            xyxy=np.array(self.boxes, dtype=np.float32),
            class_id=np.array(self.class_ids, dtype=int),
        )

    def draw(self, frame: np.ndarray) -> np.ndarray:
        """Return an annotated copy of the frame."""
        out = frame.copy()
        detections = self.as_detections()

        if len(detections) > 0:
            out = self.box_annotator.annotate(scene=out, detections=detections)
            out = self.label_annotator.annotate(
                scene=out, detections=detections, labels=list(self.labels)
            )

        self._draw_header(
            out,
            f"CAPTURE [{self.camera_name}]",
            f"Labeled: {len(self.boxes)} | " + ", ".join(self.labels),
        )
        return out

    def _draw_header(self, frame: np.ndarray, title: str, subtitle: str):
        """Draw a top header bar."""
        h, w = frame.shape[:2]
        bar_h = 44

        overlay = frame.copy()
        cv2.rectangle(overlay, (0, 0), (w, bar_h), CLR_DARK_BG, -1)
        cv2.addWeighted(overlay, 0.82, frame, 0.18, 0, frame)

        cv2.putText(frame, title, (10, 18),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.52, CLR_WHITE, 2, cv2.LINE_AA)
        cv2.putText(frame, subtitle, (10, 36),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.35, CLR_YELLOW, 1, cv2.LINE_AA)

        size_text = f"{self.image_width}x{self.image_height}"
        (tw, _), _ = cv2.getTextSize(size_text, cv2.FONT_HERSHEY_SIMPLEX, 0.35, 1)
        cv2.putText(frame, size_text, (w - tw - 10, 36),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.35, CLR_LIGHT_GREY, 1, cv2.LINE_AA)
