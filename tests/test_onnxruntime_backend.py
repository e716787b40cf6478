import tempfile
import unittest
from pathlib import Path

import numpy as np
import onnx
from onnx import TensorProto, helper, numpy_helper

from circle_kit.backends.onnxruntime_backend import OnnxRuntimeBackend
from circle_kit.detector import OnnxCircleDetector
from circle_kit.errors import InferenceError
from circle_kit.runtime import load_detector
from fakes import yolo_output


def constant_model(output: np.ndarray, input_size: int = 4) -> bytes:
    """
    Serialized graph with input "images" (1, 3, S, S) and two outputs: "output0",
    a constant tensor, and "passthrough", the input unchanged.
    """

    value = numpy_helper.from_array(np.ascontiguousarray(output, dtype=np.float32), name="output0_value")
    nodes = [
        helper.make_node("Constant", [], ["output0"], value=value),
        helper.make_node("Identity", ["images"], ["passthrough"]),
    ]
    input_shape = [1, 3, input_size, input_size]
    graph = helper.make_graph(
        nodes,
        "constant_head",
        [helper.make_tensor_value_info("images", TensorProto.FLOAT, input_shape)],
        [
            helper.make_tensor_value_info("output0", TensorProto.FLOAT, list(output.shape)),
            helper.make_tensor_value_info("passthrough", TensorProto.FLOAT, input_shape),
        ],
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    onnx.checker.check_model(model)
    return model.SerializeToString()


HEAD = np.arange(60, dtype=np.float32).reshape(1, 6, 10)


class TestOnnxRuntimeBackendSession(unittest.TestCase):
    def setUp(self) -> None:
        self.model_bytes = constant_model(HEAD)

    def _check_session(self, backend: OnnxRuntimeBackend) -> None:
        self.assertEqual(backend.input_names(), ["images"])
        self.assertEqual(backend.output_names(), ["output0", "passthrough"])
        self.assertEqual(backend.input_shape("images"), (1, 3, 4, 4))
        self.assertIn("CPUExecutionProvider", backend.providers_in_use)

        x = np.random.default_rng(0).random((1, 3, 4, 4), dtype=np.float32)
        outputs = backend.run({"images": x})
        self.assertEqual(list(outputs), ["output0", "passthrough"])
        np.testing.assert_array_equal(outputs["output0"], HEAD)
        np.testing.assert_array_equal(outputs["passthrough"], x)

    def test_loads_from_bytes(self) -> None:
        backend = OnnxRuntimeBackend(self.model_bytes)
        self.assertIsNone(backend.model_path)
        self._check_session(backend)

    def test_loads_from_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "head.onnx"
            path.write_bytes(self.model_bytes)
            backend = OnnxRuntimeBackend(path)
            self.assertEqual(backend.model_path, path)
            self._check_session(backend)

    def test_unknown_input_name(self) -> None:
        with self.assertRaises(KeyError):
            OnnxRuntimeBackend(self.model_bytes).input_shape("pixels")

    def test_wrong_input_shape_is_inference_error(self) -> None:
        backend = OnnxRuntimeBackend(self.model_bytes)
        with self.assertRaises(InferenceError):
            backend.run({"images": np.zeros((1, 3, 8, 8), dtype=np.float32)})

    def test_closed_session_is_inference_error(self) -> None:
        backend = OnnxRuntimeBackend(self.model_bytes)
        backend.close()
        x = np.zeros((1, 3, 4, 4), dtype=np.float32)
        with self.assertRaises(InferenceError):
            backend.run({"images": x})
        with self.assertRaises(InferenceError):
            backend.input_names()
        with self.assertRaises(InferenceError):
            backend.output_names()
        with self.assertRaises(InferenceError):
            backend.input_shape("images")


class TestDetectorOnOnnxRuntime(unittest.TestCase):
    def test_constant_head_gives_scenario_circles(self) -> None:
        head = yolo_output(
            [
                [120, 120, 40, 40, 0.05, 0.9],
                [121, 121, 40, 40, 0.05, 0.6],
                [60, 200, 20, 10, 0.3, 0.1],
            ]
        )
        detector = load_detector(constant_model(head, input_size=320))
        self.assertIsInstance(detector, OnnxCircleDetector)

        with detector:
            circles = detector.detect(np.zeros((360, 640, 3), dtype=np.uint8))

        self.assertEqual([c.class_name for c in circles], ["RedCenter", "ROI"])
        self.assertAlmostEqual(circles[0].cx, 240.0, places=3)
        self.assertAlmostEqual(circles[0].cy, 100.0, places=3)
        self.assertAlmostEqual(circles[0].r, 40.0, places=3)
        self.assertAlmostEqual(circles[1].cx, 120.0, places=3)
        self.assertAlmostEqual(circles[1].cy, 260.0, places=3)

    def test_closed_detector_returns_empty(self) -> None:
        detector = load_detector(constant_model(yolo_output([]), input_size=320))
        detector.close()
        with self.assertLogs("circle_kit.detector", level="ERROR"):
            self.assertEqual(detector.detect(np.zeros((32, 32, 3), dtype=np.uint8)), [])


if __name__ == "__main__":
    unittest.main()
