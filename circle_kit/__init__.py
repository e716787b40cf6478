"""
Circle target detection for live inspection video.

Turns one RGB frame into circles in original image pixels: letterbox, planar
float encoding, a forward pass through an owned inference engine, YOLO-style
output decoding, greedy NMS and inverse letterbox mapping. Only NumPy and
OpenCV are needed for the pre/post-processing; ONNX Runtime for inference.
"""

from .types import Circle, Detection, LetterboxResult
from .errors import CircleKitError, DecodeError, EncodingError, InferenceError, ModelLoadError
from .letterbox import letterbox
from .encoder import encode, to_input_tensor
from .image_io import decode_image, read_image
from .nms import NMSConfig, nms, suppress
from .postprocess import Layout, OutputDecoder, detect_layout
from .remap import UNKNOWN_CLASS, remap, to_circle
from .config import DetectorConfig, load_detector_config
from .metadata import load_class_names
from .detector import CircleDetector, MockCircleDetector, OnnxCircleDetector, make_detector
from .runtime import find_project_root, load_detector, resolve_path
from .validation import check_model_file, validate_detector
from .logging_setup import setup_logging

__all__ = [
    "Circle",
    "Detection",
    "LetterboxResult",
    "CircleKitError",
    "DecodeError",
    "EncodingError",
    "InferenceError",
    "ModelLoadError",
    "letterbox",
    "encode",
    "to_input_tensor",
    "decode_image",
    "read_image",
    "NMSConfig",
    "nms",
    "suppress",
    "Layout",
    "OutputDecoder",
    "detect_layout",
    "UNKNOWN_CLASS",
    "remap",
    "to_circle",
    "DetectorConfig",
    "load_detector_config",
    "load_class_names",
    "CircleDetector",
    "MockCircleDetector",
    "OnnxCircleDetector",
    "make_detector",
    "find_project_root",
    "load_detector",
    "resolve_path",
    "check_model_file",
    "validate_detector",
    "setup_logging",
]
