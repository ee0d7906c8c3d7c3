"""
Main Capture Orchestrator

For every active camera of a scene: collects visible edible objects, selects a
bounded non-redundant subset of boxes, writes the YOLO label file and renders
the paired image.

Usage:
    uv run python -m edible_capture.pipeline.main --scene scenes/store_shelf.json
    uv run python -m edible_capture.pipeline.main --scene scenes/store_shelf.json --output Dataset --display
"""

import sys
import time
import argparse
import cv2
from pathlib import Path
from loguru import logger

from config.settings import normalize_categories, settings
from edible_capture.detector.candidates import CandidateCollector
from edible_capture.detector.selection import GreedySelector
from edible_capture.export.label_writer import LabelWriter, format_label_line
from edible_capture.pipeline.debug_display import DebugDisplay
from edible_capture.scene.host import SceneHost, load_scene
from edible_capture.utils.schemas import CaptureResult


class CapturePipeline:
    """
    Main pipeline: Scene → Collect → Select → Labels → Render → Image

    Cameras run sequentially and share one frame counter. The counter starts at
    1 and advances once per camera that actually exported a label/image pair.
    """

    def __init__(
        self,
        host: SceneHost,
        output_dir: str | Path | None = None,
        categories: list[str] | None = None,
        viewport_margin: float | None = None,
        iou_threshold: float | None = None,
        num_objects_to_detect: int | None = None,
        image_width: int | None = None,
        image_height: int | None = None,
        show_display: bool = False,
        save_overlay: bool = False,
    ):
        self.host = host
        self.output_dir = Path(output_dir or settings.output_dir)
        self.categories = normalize_categories(categories) if categories is not None else list(settings.categories)
        self.image_width = image_width or settings.image_width
        self.image_height = image_height or settings.image_height
        self.show_display = show_display
        self.save_overlay = save_overlay

        self.collector = CandidateCollector(self.categories, viewport_margin)
        self.selector = GreedySelector(num_objects_to_detect, iou_threshold)
        self.writer = LabelWriter(self.output_dir)
        self.display = DebugDisplay(self.image_width, self.image_height)

        self.frame_index = 1
        self._classes_written = False

        # Stats
        self._results: list[CaptureResult] = []
        self._start_time = None

        logger.info(
            f"CapturePipeline: output={self.output_dir}, "
            f"categories={len(self.categories)}, "
            f"margin={self.collector.viewport_margin}, "
            f"iou_threshold={self.selector.iou_threshold}, "
            f"target={self.selector.max_detections}, "
            f"resolution={self.image_width}x{self.image_height}"
        )

    def capture_camera(self, camera, name_suffix: bool = False) -> CaptureResult:
        """
        Run collect → select → export for one camera.

        Args:
            camera: active camera from the scene host
            name_suffix: append the camera name to the frame filename

        Returns:
            CaptureResult describing what (if anything) was written

        Raises:
            OSError: output directory, label, image or overlay could not be written
        """
        self.display.reset(camera.name)

        candidates = self.collector.collect(camera, self.host.objects())
        if not candidates:
            logger.warning(f"⚠️ No visible edible objects in view of {camera.name}.")
            return CaptureResult(camera_name=camera.name, status="no_candidates")

        detections = self.selector.select(camera, candidates)
        label_lines = []
        for detection in detections:
            label_lines.append(format_label_line(detection))
            self.display.add(detection)
            logger.info(f"✅ Added: {detection.candidate.obj.name} ({detection.category})")

        logger.info(
            f"🔎 [{camera.name}] Labeled objects: {len(detections)} "
            f"(diversity={self.selector.stats['first_pass']}, "
            f"backfill={self.selector.stats['backfill']})"
        )

        if not label_lines:
            logger.warning(f"⚠️ No labelable objects for camera {camera.name}")
            return CaptureResult(
                camera_name=camera.name,
                status="no_selection",
                num_candidates=len(candidates),
            )

        if not self._classes_written:
            self.writer.write_class_names(self.categories)
            self._classes_written = True

        stem = self.writer.frame_stem(self.frame_index, camera.name if name_suffix else None)

        # Label file always lands before the image
        label_path = self.writer.write_labels(stem, label_lines)
        logger.info(f"📄 [{camera.name}] Labels saved: {label_path}")

        frame = self.host.render(camera, self.image_width, self.image_height)
        if frame.shape[:2] != (self.image_height, self.image_width):
            raise ValueError(
                f"Renderer returned {frame.shape[1]}x{frame.shape[0]}, "
                f"expected {self.image_width}x{self.image_height}"
            )
        image_path = self.writer.write_image(stem, frame)
        logger.info(f"🖼️ [{camera.name}] Image saved: {image_path}")

        self._show_overlay(frame, stem)

        result = CaptureResult(
            camera_name=camera.name,
            status="exported",
            num_candidates=len(candidates),
            num_labels=len(label_lines),
            frame_index=self.frame_index,
            label_path=str(label_path),
            image_path=str(image_path),
        )
        self.frame_index += 1
        return result

    def _show_overlay(self, frame, stem: str):
        if not (self.show_display or self.save_overlay):
            return

        annotated = self.display.draw(frame)
        if self.save_overlay:
            debug_dir = self.output_dir / "debug"
            debug_dir.mkdir(parents=True, exist_ok=True)
            debug_path = debug_dir / f"{stem}.png"
            if not cv2.imwrite(str(debug_path), annotated):
                raise OSError(f"Overlay write failed: {debug_path}")
            logger.debug(f"Overlay saved: {debug_path}")
        if self.show_display:
            cv2.imshow("Edible Label Capture", annotated)
            cv2.waitKey(1)

    def run(self, camera_names: list[str] | None = None) -> list[CaptureResult]:
        """
        Capture every active camera once.

        Args:
            camera_names: restrict the run to these cameras (all active if None)

        Returns:
            One CaptureResult per processed camera, in camera order
        """
        cameras = self.host.cameras()
        # Suffix depends on the scene, not on the --camera filter
        name_suffix = len(cameras) > 1
        if camera_names:
            wanted = set(camera_names)
            cameras = [cam for cam in cameras if cam.name in wanted]

        self._start_time = time.time()
        results = []

        if not cameras:
            logger.warning("No active cameras - nothing to capture")
            return results

        try:
            for camera in cameras:
                results.append(self.capture_camera(camera, name_suffix=name_suffix))
        finally:
            self._results.extend(results)
            if self.show_display:
                cv2.destroyAllWindows()
            self._print_summary()

        return results

    def _print_summary(self):
        """Print final run statistics."""
        elapsed = time.time() - self._start_time if self._start_time else 0
        exported = [r for r in self._results if r.status == "exported"]

        logger.info("=" * 60)
        logger.info("📋 CAPTURE SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Cameras processed: {len(self._results)}")
        logger.info(f"Frames exported: {len(exported)}")
        logger.info(f"Labels written: {sum(r.num_labels for r in exported)}")
        logger.info(f"Skipped (no candidates): {sum(r.status == 'no_candidates' for r in self._results)}")
        logger.info(f"Skipped (no selection): {sum(r.status == 'no_selection' for r in self._results)}")
        logger.info(f"Next frame index: {self.frame_index}")
        logger.info(f"Total runtime: {elapsed:.2f}s")
        logger.info("=" * 60)


def main():
    parser = argparse.ArgumentParser(description="Edible Label Capture")
    parser.add_argument(
        "--scene", type=str, default=None,
        help="JSON scene description (defaults to SCENE_PATH)"
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Output directory for label/image pairs"
    )
    parser.add_argument(
        "--camera", action="append", default=None,
        help="Only capture this camera (repeatable)"
    )
    parser.add_argument(
        "--display", action="store_true",
        help="Show the annotated overlay window"
    )
    parser.add_argument(
        "--save-overlay", action="store_true",
        help="Save annotated overlays to <output>/debug"
    )
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())

    scene_path = args.scene or settings.scene_path
    if not scene_path:
        parser.error("--scene is required when SCENE_PATH is not set")

    pipeline = CapturePipeline(
        host=load_scene(scene_path),
        output_dir=args.output,
        show_display=args.display,
        save_overlay=args.save_overlay,
    )
    pipeline.run(camera_names=args.camera)


if __name__ == "__main__":
    main()
