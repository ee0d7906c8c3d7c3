"""
YOLO Label Writer

Writes per-frame annotation files and rendered images.

YOLO Format (per line):
    <class_index> <x_center> <y_center> <width> <height>

All values after the class index are normalized to [0, 1] with 6 decimals.
y_center uses a top-left origin, so the viewport-space center is flipped.

Output structure:
    output_dir/
        classes.txt                 - category keywords in class-index order
        frame_0001.txt / .png       - single active camera
        frame_0002_Side_Cam.txt     - several active cameras (name suffix)
        frame_0002_Side_Cam.png
"""

import cv2
import numpy as np
from pathlib import Path
from loguru import logger

from edible_capture.utils.schemas import Detection


def format_label_line(detection: Detection) -> str:
    """Serialize one detection as a YOLO label line."""
    x_center, y_center, width, height = detection.box.to_yolo()
    return f"{detection.class_id} {x_center:.6f} {y_center:.6f} {width:.6f} {height:.6f}"


def sanitize_camera_name(name: str) -> str:
    return name.replace(" ", "_")


class LabelWriter:
    """Writes label/image pairs that share a filename stem."""

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)

    def ensure_output_dir(self) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    @staticmethod
    def frame_stem(frame_index: int, camera_name: str | None = None) -> str:
        """frame_0007 or frame_0007_<camera> when a camera name is given."""
        stem = f"frame_{frame_index:04d}"
        if camera_name:
            stem = f"{stem}_{sanitize_camera_name(camera_name)}"
        return stem

    def write_labels(self, stem: str, lines: list[str]) -> Path:
        """Write label lines (newline-separated, no header)."""
        self.ensure_output_dir()
        label_path = self.output_dir / f"{stem}.txt"
        label_path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return label_path

    def write_image(self, stem: str, image: np.ndarray) -> Path:
        """Encode as lossless PNG and write next to the label file."""
        self.ensure_output_dir()
        image_path = self.output_dir / f"{stem}.png"
        ok, buffer = cv2.imencode(".png", image)
        if not ok:
            raise OSError(f"PNG encoding failed for {image_path}")
        image_path.write_bytes(buffer.tobytes())
        return image_path

    def write_class_names(self, categories: list[str]) -> Path:
        """Write classes.txt so the class-index contract ships with the dataset."""
        self.ensure_output_dir()
        classes_path = self.output_dir / "classes.txt"
        classes_path.write_text("".join(f"{c}\n" for c in categories), encoding="utf-8")
        logger.info(f"Saved {len(categories)} class names -> {classes_path}")
        return classes_path
