from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class Detection:
    """
    Candidate box in letterboxed model-input pixel space.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    confidence: float
    class_id: int

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2


@dataclass(frozen=True)
class Circle:
    """
    Detected circular target in original image pixel space.
    """

    cx: float
    cy: float
    r: float
    confidence: float
    class_name: str

    def as_dict(self) -> dict:
        return {
            "cx": self.cx,
            "cy": self.cy,
            "r": self.r,
            "confidence": self.confidence,
            "class_name": self.class_name,
        }


@dataclass(frozen=True)
class LetterboxResult:
    image: np.ndarray
    scale: float
    pad_x: float
    pad_y: float
    # (width, height) of the frame before letterboxing
    source_size: Tuple[int, int] = (0, 0)
