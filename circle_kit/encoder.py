import numpy as np

from .errors import EncodingError


def to_rgb8(image: np.ndarray) -> np.ndarray:
    """
    Coerce an 8-bit image to (H, W, 3) RGB. Gray is replicated, alpha is dropped.
    """

    if image is None or not hasattr(image, "shape"):
        raise EncodingError("Image must be a NumPy array.")
    if image.dtype != np.uint8:
        raise EncodingError(f"Expected 8-bit pixel data, got dtype {image.dtype}.")
    if image.ndim not in (2, 3):
        raise EncodingError(f"Expected image shape (H, W) or (H, W, C), got {image.shape}")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise EncodingError(f"Image has zero dimensions: {image.shape}")

    if image.ndim == 2:
        return np.repeat(image[:, :, None], 3, axis=2)

    channels = image.shape[2]
    if channels == 1:
        return np.repeat(image, 3, axis=2)
    if channels == 3:
        return np.ascontiguousarray(image)
    if channels == 4:
        return np.ascontiguousarray(image[:, :, :3])
    raise EncodingError(f"Unsupported channel count: {channels}")


def encode(image: np.ndarray) -> np.ndarray:
    """
    Flatten an RGB image into a channel-planar float32 buffer of length 3*H*W.

    Red plane first, then green, then blue; row-major inside each plane.
    Values are byte / 255 so they lie in [0, 1].
    """

    rgb = to_rgb8(image)
    planar = np.transpose(rgb, (2, 0, 1))
    return np.ascontiguousarray(planar, dtype=np.float32).reshape(-1) / np.float32(255.0)


def to_input_tensor(flat: np.ndarray, side: int) -> np.ndarray:
    """Reshape a flat planar buffer into the (1, 3, side, side) engine input."""
    expected = 3 * side * side
    if flat.size != expected:
        raise EncodingError(f"Buffer has {flat.size} values, expected {expected} for side {side}.")
    return flat.reshape(1, 3, side, side)
