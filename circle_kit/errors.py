"""
Exception taxonomy for the detection pipeline.

`ModelLoadError` is raised once at construction and leaves the detector unusable.
Every other error is per-call: the detector stays reusable and `detect()` turns
them into an empty result.
"""


class CircleKitError(Exception):
    pass


class ModelLoadError(CircleKitError):
    pass


class EncodingError(CircleKitError):
    """Input frame is empty or its pixel data cannot be decoded."""


class DecodeError(CircleKitError):
    """Engine output is missing or has an unexpected rank."""


class InferenceError(CircleKitError):
    """Forward pass failed inside the inference engine."""
