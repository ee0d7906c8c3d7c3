"""
End-to-end tests for the capture pipeline with a stub scene host.

Run: uv run pytest tests/test_pipeline.py -v
"""

import cv2
import numpy as np
import pytest
from loguru import logger

from edible_capture.export import label_writer
from edible_capture.pipeline import main as pipeline_main
from edible_capture.pipeline.debug_display import DebugDisplay
from edible_capture.pipeline.main import CapturePipeline
from fakes import FlatCamera, StubHost, make_object


def _pipeline(host, tmp_path, **kwargs):
    params = dict(
        output_dir=tmp_path,
        categories=["bottle"],
        viewport_margin=0.05,
        iou_threshold=0.1,
        num_objects_to_detect=1,
        image_width=64,
        image_height=36,
    )
    params.update(kwargs)
    return CapturePipeline(host, **params)


def _frame_files(tmp_path):
    return sorted(p.name for p in tmp_path.glob("frame_*"))


class TestSingleCamera:

    def test_single_bottle_exported(self, tmp_path):
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5), depth=2.0)], [FlatCamera()])
        pipeline = _pipeline(host, tmp_path)

        results = pipeline.run()

        assert len(results) == 1
        result = results[0]
        assert result.status == "exported"
        assert result.frame_index == 1
        assert result.num_labels == 1
        assert _frame_files(tmp_path) == ["frame_0001.png", "frame_0001.txt"]
        assert (tmp_path / "frame_0001.txt").read_text() == "0 0.500000 0.500000 0.200000 0.200000\n"
        assert pipeline.frame_index == 2

    def test_image_matches_configured_resolution(self, tmp_path):
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], [FlatCamera()])
        _pipeline(host, tmp_path).run()

        image = cv2.imread(str(tmp_path / "frame_0001.png"))
        assert image.shape == (36, 64, 3)
        assert host.render_calls == [("Main Camera", 64, 36)]

    def test_classes_file_written_with_export(self, tmp_path):
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], [FlatCamera()])
        _pipeline(host, tmp_path, categories=["chips", "bottle"]).run()
        assert (tmp_path / "classes.txt").read_text().splitlines() == ["chips", "bottle"]
        assert (tmp_path / "frame_0001.txt").read_text().startswith("1 ")

    def test_no_matching_objects_writes_nothing(self, tmp_path):
        host = StubHost([make_object(0, "Shelf", (0.5, 0.5))], [FlatCamera()])
        results = _pipeline(host, tmp_path).run()

        assert results[0].status == "no_candidates"
        assert list(tmp_path.iterdir()) == []
        assert host.render_calls == []

    def test_object_behind_camera_writes_nothing(self, tmp_path):
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5), depth=-2.0)], [FlatCamera()])
        results = _pipeline(host, tmp_path).run()
        assert results[0].status == "no_candidates"

    def test_zero_target_reports_no_selection(self, tmp_path):
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], [FlatCamera()])
        pipeline = _pipeline(host, tmp_path, num_objects_to_detect=0)

        result = pipeline.run()[0]

        assert result.status == "no_selection"
        assert result.num_candidates == 1
        assert list(tmp_path.iterdir()) == []
        assert pipeline.frame_index == 1

    def test_mixed_case_categories_normalized(self, tmp_path):
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], [FlatCamera()])
        pipeline = _pipeline(host, tmp_path, categories=["Bottle"])

        result = pipeline.run()[0]

        assert result.status == "exported"
        assert pipeline.categories == ["bottle"]
        assert (tmp_path / "frame_0001.txt").read_text().startswith("0 ")
        assert (tmp_path / "classes.txt").read_text().splitlines() == ["bottle"]

    def test_overlapping_cans_backfilled(self, tmp_path):
        objects = [
            make_object(0, "CanNear", (0.5, 0.5), depth=2.0),
            make_object(1, "CanFar", (0.6, 0.5), depth=3.0),
        ]
        host = StubHost(objects, [FlatCamera()])
        _pipeline(host, tmp_path, categories=["can"], num_objects_to_detect=2).run()

        lines = (tmp_path / "frame_0001.txt").read_text().splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("0 0.500000")
        assert lines[1].startswith("0 0.600000")

    def test_repeated_runs_keep_counting(self, tmp_path):
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], [FlatCamera()])
        pipeline = _pipeline(host, tmp_path)

        pipeline.run()
        pipeline.run()

        assert _frame_files(tmp_path) == [
            "frame_0001.png", "frame_0001.txt", "frame_0002.png", "frame_0002.txt",
        ]


class TestMultiCamera:

    def test_camera_suffix_and_shared_counter(self, tmp_path):
        cameras = [
            FlatCamera("Main Camera"),
            FlatCamera("Blind Cam", offset=(5.0, 0.0, 0.0)),
            FlatCamera("Side Cam"),
        ]
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], cameras)

        results = _pipeline(host, tmp_path).run()

        assert [r.status for r in results] == ["exported", "no_candidates", "exported"]
        assert [r.frame_index for r in results] == [1, None, 2]
        assert _frame_files(tmp_path) == [
            "frame_0001_Main_Camera.png", "frame_0001_Main_Camera.txt",
            "frame_0002_Side_Cam.png", "frame_0002_Side_Cam.txt",
        ]

    def test_camera_filter(self, tmp_path):
        cameras = [FlatCamera("Main Camera"), FlatCamera("Side Cam")]
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], cameras)

        results = _pipeline(host, tmp_path).run(camera_names=["Side Cam"])

        assert [r.camera_name for r in results] == ["Side Cam"]
        assert _frame_files(tmp_path) == ["frame_0001_Side_Cam.png", "frame_0001_Side_Cam.txt"]

    def test_single_camera_scene_has_no_suffix(self, tmp_path):
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], [FlatCamera("Side Cam")])

        _pipeline(host, tmp_path).run(camera_names=["Side Cam"])

        assert _frame_files(tmp_path) == ["frame_0001.png", "frame_0001.txt"]

    def test_no_cameras(self, tmp_path):
        assert _pipeline(StubHost([], []), tmp_path).run() == []


class TestFailures:

    def test_image_failure_leaves_label_only(self, tmp_path, monkeypatch):
        monkeypatch.setattr(label_writer.cv2, "imencode", lambda *args, **kwargs: (False, None))
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], [FlatCamera()])
        pipeline = _pipeline(host, tmp_path)

        with pytest.raises(OSError):
            pipeline.run()

        assert (tmp_path / "frame_0001.txt").exists()
        assert not (tmp_path / "frame_0001.png").exists()
        assert pipeline.frame_index == 1

    def test_overlay_write_failure_raises(self, tmp_path, monkeypatch):
        monkeypatch.setattr(pipeline_main.cv2, "imwrite", lambda *args, **kwargs: False)
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], [FlatCamera()])

        with pytest.raises(OSError, match="Overlay write failed"):
            _pipeline(host, tmp_path, save_overlay=True).run()

        assert (tmp_path / "frame_0001.txt").exists()
        assert (tmp_path / "frame_0001.png").exists()

    def test_wrong_render_size_rejected(self, tmp_path):
        class SmallRenderHost(StubHost):
            def render(self, camera, width, height):
                return np.zeros((10, 10, 3), dtype=np.uint8)

        host = SmallRenderHost([make_object(0, "WaterBottle", (0.5, 0.5))], [FlatCamera()])
        with pytest.raises(ValueError):
            _pipeline(host, tmp_path).run()


class TestOverlay:

    def test_save_overlay(self, tmp_path):
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], [FlatCamera()])
        _pipeline(host, tmp_path, save_overlay=True).run()

        overlay = cv2.imread(str(tmp_path / "debug" / "frame_0001.png"))
        plain = cv2.imread(str(tmp_path / "frame_0001.png"))
        assert overlay.shape == plain.shape
        assert not np.array_equal(overlay, plain)

    def test_display_state_per_camera(self, tmp_path):
        cameras = [FlatCamera("Main Camera"), FlatCamera("Side Cam")]
        objects = [make_object(0, "WaterBottle", (0.5, 0.5))]
        pipeline = _pipeline(StubHost(objects, cameras), tmp_path)

        pipeline.run()

        # Only the last camera's boxes remain
        assert pipeline.display.camera_name == "Side Cam"
        assert pipeline.display.labels == ["bottle"]
        x1, y1, x2, y2 = pipeline.display.boxes[0]
        assert x1 == pytest.approx(0.4 * 64)
        assert y1 == pytest.approx(0.4 * 36)
        assert x2 == pytest.approx(0.6 * 64)
        assert y2 == pytest.approx(0.6 * 36)

    def test_empty_display_draws_header_only(self):
        display = DebugDisplay(64, 36)
        display.reset("Main Camera")
        frame = np.zeros((36, 64, 3), dtype=np.uint8)

        out = display.draw(frame)

        assert out.shape == frame.shape
        assert len(display.as_detections()) == 0
        assert np.array_equal(frame, np.zeros((36, 64, 3), dtype=np.uint8))


class TestWarnings:
    """Skipped cameras are reported on the WARNING level."""

    def _capture_warnings(self, pipeline):
        messages = []
        sink_id = logger.add(lambda message: messages.append(message.record["message"]), level="WARNING")
        try:
            pipeline.run()
        finally:
            logger.remove(sink_id)
        return messages

    def test_no_candidates_warning(self, tmp_path):
        host = StubHost([make_object(0, "Shelf", (0.5, 0.5))], [FlatCamera()])
        messages = self._capture_warnings(_pipeline(host, tmp_path))
        assert any("No visible edible objects in view of Main Camera" in m for m in messages)

    def test_no_selection_warning(self, tmp_path):
        host = StubHost([make_object(0, "WaterBottle", (0.5, 0.5))], [FlatCamera()])
        messages = self._capture_warnings(_pipeline(host, tmp_path, num_objects_to_detect=0))
        assert any("No labelable objects for camera Main Camera" in m for m in messages)
        assert not any("No visible edible objects" in m for m in messages)
