from typing import Tuple

import numpy as np

from .types import LetterboxResult


def letterbox_params(src_w: int, src_h: int, target_size: int) -> Tuple[float, float, float]:
    """
    Uniform scale and centering offsets for fitting (src_w, src_h) into a square side.

    Returns:
        (scale, pad_x, pad_y). Offsets may be fractional.
    """

    if target_size <= 0:
        raise ValueError(f"target_size must be > 0 (got {target_size})")
    if src_w <= 0 or src_h <= 0:
        return 1.0, 0.0, 0.0

    scale = min(target_size / src_w, target_size / src_h)
    new_w, new_h = src_w * scale, src_h * scale
    pad_x = (target_size - new_w) / 2
    pad_y = (target_size - new_h) / 2
    return scale, pad_x, pad_y


def letterbox(image: np.ndarray, target_size: int = 320) -> LetterboxResult:
    """
    Scale `image` uniformly into a black `target_size` x `target_size` canvas, centered.

    The source is never stretched; the axis that limits the scale is filled exactly
    and the other axis gets equal black margins on both sides. An empty image yields
    an all-black RGB canvas with scale 1 and no padding.
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox(). Install with `pip install opencv-python`.") from e

    if image is None or not hasattr(image, "shape"):
        raise TypeError("image must be a NumPy array (H, W[, C]).")

    h, w = (int(image.shape[0]), int(image.shape[1])) if image.ndim >= 2 else (0, 0)
    channels = image.shape[2] if image.ndim == 3 else None

    scale, pad_x, pad_y = letterbox_params(w, h, target_size)
    if w <= 0 or h <= 0:
        blank = np.zeros((target_size, target_size, 3), dtype=np.uint8)
        return LetterboxResult(image=blank, scale=1.0, pad_x=0.0, pad_y=0.0, source_size=(w, h))

    # Continuous coordinates map as dst = src * scale + pad; OpenCV samples at
    # pixel centers, hence the half-pixel term.
    tx = pad_x + 0.5 * (scale - 1.0)
    ty = pad_y + 0.5 * (scale - 1.0)
    m = np.array([[scale, 0.0, tx], [0.0, scale, ty]], dtype=np.float64)

    padded = cv2.warpAffine(
        image,
        m,
        (target_size, target_size),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=0,
    )
    if padded.ndim == 2 and channels is not None:
        # OpenCV drops a trailing singleton channel.
        padded = padded[:, :, None]

    return LetterboxResult(image=padded, scale=float(scale), pad_x=float(pad_x), pad_y=float(pad_y), source_size=(w, h))
