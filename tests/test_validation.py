import tempfile
import unittest
from pathlib import Path

from circle_kit.config import DetectorConfig
from circle_kit.detector import MockCircleDetector, OnnxCircleDetector
from circle_kit.errors import InferenceError
from circle_kit.validation import check_model_file, validate_detector
from fakes import FakeEngine, yolo_output


class TestCheckModelFile(unittest.TestCase):
    def test_missing_and_empty_files_fail(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            empty = Path(tmp) / "empty.onnx"
            empty.write_bytes(b"")
            with self.assertLogs("circle_kit.validation", level="ERROR"):
                self.assertFalse(check_model_file(Path(tmp) / "missing.onnx"))
            with self.assertLogs("circle_kit.validation", level="ERROR"):
                self.assertFalse(check_model_file(empty))

    def test_existing_file_passes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            model = Path(tmp) / "model.onnx"
            model.write_bytes(b"\x08\x07")
            self.assertTrue(check_model_file(model))


class TestValidateDetector(unittest.TestCase):
    def test_mock_detector_passes(self) -> None:
        self.assertTrue(validate_detector(MockCircleDetector()))

    def test_working_engine_passes_with_no_circles(self) -> None:
        detector = OnnxCircleDetector(FakeEngine({"output0": yolo_output([])}), DetectorConfig())
        self.assertTrue(validate_detector(detector))

    def test_failing_engine_fails(self) -> None:
        detector = OnnxCircleDetector(FakeEngine(error=InferenceError("no kernel")), DetectorConfig())
        with self.assertLogs("circle_kit.validation", level="ERROR"):
            self.assertFalse(validate_detector(detector))


if __name__ == "__main__":
    unittest.main()
