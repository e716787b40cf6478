from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .backends.base import InferenceEngine
from .config import DetectorConfig
from .encoder import encode, to_input_tensor, to_rgb8
from .errors import CircleKitError, EncodingError, InferenceError, ModelLoadError
from .letterbox import letterbox
from .nms import NMSConfig, suppress
from .postprocess import OutputDecoder
from .remap import class_name_for, remap
from .types import Circle, LetterboxResult


logger = logging.getLogger(__name__)


class CircleDetector(ABC):
    """
    One RGB frame in, circles in original image pixels out.

    `run` raises per-call errors; `detect` logs them and returns an empty list so a
    live overlay keeps going on the next frame.
    """

    def __init__(self, config: DetectorConfig = DetectorConfig()):
        self.config = config

    @abstractmethod
    def run(self, image: np.ndarray) -> List[Circle]:
        ...

    def detect(self, image: np.ndarray) -> List[Circle]:
        try:
            return self.run(image)
        except CircleKitError as e:
            logger.error("Detection failed: %s", e)
            return []

    def close(self) -> None:
        pass

    def __enter__(self) -> "CircleDetector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass(frozen=True)
class PreprocessResult:
    tensor: np.ndarray
    letterbox: LetterboxResult


class OnnxCircleDetector(CircleDetector):
    """
    Engine-backed pipeline: letterbox -> encode -> forward pass -> decode -> NMS -> remap.

    Holds no per-call state; the engine handle and config are read-only after construction.
    """

    def __init__(self, engine: InferenceEngine, config: DetectorConfig = DetectorConfig()):
        super().__init__(config)
        if engine is None:
            raise ModelLoadError("No inference engine provided.")
        self.engine = engine

        inputs = engine.input_names()
        if not inputs:
            raise ModelLoadError("Model declares no inputs.")
        self.input_name = inputs[0]
        if not engine.output_names():
            raise ModelLoadError("Model declares no outputs.")

        self._check_input_shape()
        self.decoder = OutputDecoder(
            num_classes=len(config.class_names),
            conf_threshold=config.conf_threshold,
            layout=config.layout,
        )
        self.nms_cfg = NMSConfig(iou_threshold=config.iou_threshold, max_detections=config.max_detections)

    def _check_input_shape(self) -> None:
        shape = self.engine.input_shape(self.input_name)
        side = self.config.input_size
        if len(shape) == 4 and all(isinstance(d, int) for d in shape[2:]) and tuple(shape[2:]) != (side, side):
            logger.warning("Model input %s is %s but input_size is %d", self.input_name, shape, side)

    def preprocess(self, image: np.ndarray) -> PreprocessResult:
        # Validates dtype/shape and drops alpha before any resampling.
        rgb = to_rgb8(image)
        lb = letterbox(rgb, self.config.input_size)
        tensor = to_input_tensor(encode(lb.image), self.config.input_size)
        return PreprocessResult(tensor=tensor, letterbox=lb)

    def run(self, image: np.ndarray) -> List[Circle]:
        logger.debug("Starting detection, input image shape: %s", getattr(image, "shape", None))
        prep = self.preprocess(image)
        logger.debug(
            "Letterboxed %s to %d px: scale=%.4f pad=(%.1f, %.1f)",
            prep.letterbox.source_size,
            self.config.input_size,
            prep.letterbox.scale,
            prep.letterbox.pad_x,
            prep.letterbox.pad_y,
        )
        try:
            outputs = self.engine.run({self.input_name: prep.tensor})
        except CircleKitError:
            raise
        except Exception as e:
            raise InferenceError(f"Forward pass failed: {e}") from e

        candidates = self.decoder.decode(outputs)
        kept = suppress(candidates, self.nms_cfg)
        logger.debug("After NMS: %d of %d candidates", len(kept), len(candidates))

        circles = remap(kept, prep.letterbox, self.config.class_names)
        for c in circles:
            logger.debug("Detected %s: center(%.1f, %.1f) radius=%.1f confidence=%.3f", c.class_name, c.cx, c.cy, c.r, c.confidence)
        return circles

    def close(self) -> None:
        self.engine.close()


class MockCircleDetector(CircleDetector):
    """
    Deterministic stand-in used when no model is available (UI work, demos, tests).

    Always reports two circles placed relative to the frame size.
    """

    # (x fraction, y fraction, radius px, confidence, class id)
    MOCK_CIRCLES = (
        (0.3, 0.4, 50.0, 0.85, 0),
        (0.7, 0.6, 30.0, 0.92, 1),
    )

    def __init__(self, config: DetectorConfig = DetectorConfig()):
        super().__init__(config)
        logger.info("Using mock circle detector; no model is loaded")

    def run(self, image: np.ndarray) -> List[Circle]:
        if image is None or not hasattr(image, "shape") or image.ndim < 2:
            raise EncodingError("image must be a NumPy array (H, W[, C]).")
        h, w = image.shape[:2]
        if w == 0 or h == 0:
            raise EncodingError(f"Image has zero dimensions: {image.shape}")

        circles = [
            Circle(cx=w * fx, cy=h * fy, r=r, confidence=conf, class_name=class_name_for(cls, self.config.class_names))
            for fx, fy, r, conf, cls in self.MOCK_CIRCLES
        ]
        circles.sort(key=lambda c: c.confidence, reverse=True)
        return circles


def make_detector(engine: Optional[InferenceEngine], config: DetectorConfig = DetectorConfig(), *, mock: bool = False) -> CircleDetector:
    """Pick the detector variant at construction time."""
    if mock:
        return MockCircleDetector(config)
    return OnnxCircleDetector(engine, config)
