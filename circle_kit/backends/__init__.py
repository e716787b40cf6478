"""
Inference engines for circle_kit.

Concrete runtimes live in separate modules so pre/post-processing stays usable
without installing an inference runtime.
"""

from __future__ import annotations

from .base import InferenceEngine

__all__ = ["InferenceEngine"]
