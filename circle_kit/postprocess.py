import logging
from enum import Enum
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .errors import DecodeError
from .types import Detection


logger = logging.getLogger(__name__)

BOX_FEATURES = 4


class Layout(str, Enum):
    """
    Orientation of the two non-batch dims of a YOLO-style output tensor.

    - FEATURES_FIRST: (1, 4 + C, A), e.g. 6 x 2100 for two classes at 320px
    - ANCHORS_FIRST: (1, A, 4 + C)
    """

    FEATURES_FIRST = "features_first"
    ANCHORS_FIRST = "anchors_first"


def detect_layout(shape: Sequence[int]) -> Layout:
    """
    Pick the layout for a (batch, d1, d2) shape: the larger dim is the anchor count.

    Equal dims cannot be told apart; that case is logged and read as FEATURES_FIRST.
    """

    if len(shape) != 3:
        raise DecodeError(f"Expected a 3-d output shape, got {tuple(shape)}")
    d1, d2 = int(shape[1]), int(shape[2])
    if d1 == d2:
        logger.warning("Ambiguous output layout %s: both dims are %d, assuming %s", tuple(shape), d1, Layout.FEATURES_FIRST.value)
        return Layout.FEATURES_FIRST
    return Layout.ANCHORS_FIRST if d1 > d2 else Layout.FEATURES_FIRST


class OutputDecoder:
    """
    Turns the raw output tensor into thresholded candidate Detections.

    Box geometry is read as (cx, cy, w, h) in model-input pixels, followed by one
    score channel per class. Each anchor keeps its best class score; ties go to the
    lowest class index.
    """

    def __init__(
        self,
        num_classes: int,
        conf_threshold: float = 0.1,
        layout: Optional[Layout] = None,
        output_name: Optional[str] = None,
    ):
        if num_classes < 1:
            raise ValueError("num_classes must be >= 1")
        self.num_classes = num_classes
        self.conf_threshold = conf_threshold
        # None measures the layout on every call.
        self.layout = layout
        self.output_name = output_name

    def decode(self, outputs: Mapping[str, np.ndarray]) -> List[Detection]:
        return self.decode_tensor(self.select_output(outputs))

    def select_output(self, outputs: Mapping[str, np.ndarray]) -> np.ndarray:
        if not outputs:
            raise DecodeError("Inference engine returned no output tensor.")
        if self.output_name is not None:
            if self.output_name not in outputs:
                raise DecodeError(f"Output {self.output_name!r} not found. Available: {list(outputs)}")
            tensor = outputs[self.output_name]
        else:
            tensor = next(iter(outputs.values()))
        if tensor is None:
            raise DecodeError("Inference engine returned an empty output tensor.")
        return tensor

    def decode_tensor(self, tensor: np.ndarray) -> List[Detection]:
        grid = self._feature_grid(tensor)
        boxes, scores, class_ids = self._score_anchors(grid)
        keep = scores >= self.conf_threshold
        logger.debug("After confidence threshold: %d of %d anchors", int(keep.sum()), scores.shape[0])

        return [
            Detection(x1=float(x1), y1=float(y1), x2=float(x2), y2=float(y2), confidence=float(s), class_id=int(c))
            for (x1, y1, x2, y2), s, c in zip(boxes[keep], scores[keep], class_ids[keep])
        ]

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _feature_grid(self, tensor: np.ndarray) -> np.ndarray:
        """
        Normalize the tensor to a (features, anchors) float32 grid.
        """

        p = np.asarray(tensor, dtype=np.float32)
        if p.ndim < 3:
            raise DecodeError(f"Unsupported output shape {p.shape}: expected (batch, d1, d2).")
        while p.ndim > 3 and p.shape[0] == 1:
            p = p[0]
        if p.ndim > 3:
            raise DecodeError(f"Unsupported output shape {p.shape}: expected (batch, d1, d2).")
        if p.shape[0] == 0:
            raise DecodeError(f"Output tensor has an empty batch: {p.shape}")
        if p.shape[0] > 1:
            logger.warning("Output batch is %d, decoding the first item only", p.shape[0])

        layout = self.layout or detect_layout(p.shape)
        grid = p[0] if layout is Layout.FEATURES_FIRST else p[0].T
        features, anchors = grid.shape
        logger.debug("Output shape %s, layout %s: anchors=%d features=%d", p.shape, layout.value, anchors, features)

        expected = BOX_FEATURES + self.num_classes
        if features != expected:
            logger.warning("Feature count mismatch, expected: %d, actual: %d", expected, features)
        if features < BOX_FEATURES:
            raise DecodeError(f"Output has {features} features, need at least {BOX_FEATURES} for box geometry.")
        return grid

    def _score_anchors(self, grid: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        n_cls = min(self.num_classes, grid.shape[0] - BOX_FEATURES)
        anchors = grid.shape[1]
        if n_cls <= 0 or anchors == 0:
            return np.empty((0, 4), dtype=np.float32), np.empty((0,), dtype=np.float32), np.empty((0,), dtype=np.int64)

        cx, cy, w, h = grid[0], grid[1], grid[2], grid[3]
        boxes = np.stack([cx - w / 2, cy - h / 2, cx + w / 2, cy + h / 2], axis=1)

        class_scores = grid[BOX_FEATURES : BOX_FEATURES + n_cls]
        # np.argmax returns the first maximum, so ties resolve to the lowest class id.
        class_ids = np.argmax(class_scores, axis=0)
        scores = class_scores[class_ids, np.arange(anchors)]
        return boxes, scores, class_ids
