from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np

from .errors import EncodingError


PathLike = Union[str, Path]


def _cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for image decoding. Install with `pip install opencv-python`.") from e
    return cv2


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode an encoded still frame (JPEG, PNG, ...) into an (H, W, 3) RGB uint8 array.
    """

    cv2 = _cv2()
    if not data:
        raise EncodingError("Frame data is empty.")

    buf = np.frombuffer(data, dtype=np.uint8)
    bgr = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if bgr is None:
        raise EncodingError(f"Could not decode frame data ({len(data)} bytes).")
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def read_image(path: PathLike) -> np.ndarray:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Could not read image at path: {p}")
    return decode_image(p.read_bytes())


def from_bgr(frame_bgr: np.ndarray) -> np.ndarray:
    """Convert an OpenCV-style BGR frame to RGB."""
    if frame_bgr is None or not hasattr(frame_bgr, "shape"):
        raise EncodingError("frame_bgr must be a NumPy array (BGR).")
    if frame_bgr.ndim != 3 or frame_bgr.shape[2] != 3:
        raise EncodingError(f"Expected frame shape (H, W, 3), got {getattr(frame_bgr, 'shape', None)}")
    return np.ascontiguousarray(frame_bgr[:, :, ::-1])
