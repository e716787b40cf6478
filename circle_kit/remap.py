from typing import Iterable, List, Sequence

from .types import Circle, Detection, LetterboxResult


UNKNOWN_CLASS = "Unknown"


def class_name_for(class_id: int, class_names: Sequence[str]) -> str:
    if 0 <= class_id < len(class_names):
        return class_names[class_id]
    return UNKNOWN_CLASS


def to_circle(det: Detection, lb: LetterboxResult, class_names: Sequence[str]) -> Circle:
    """
    Map a model-space box to a circle in original image pixels.

    The radius is half the longer box side; padding is removed before the scale is undone.
    """

    cx = (det.x1 + det.x2) / 2
    cy = (det.y1 + det.y2) / 2
    r = max(det.x2 - det.x1, det.y2 - det.y1) / 2

    cx = (cx - lb.pad_x) / lb.scale
    cy = (cy - lb.pad_y) / lb.scale
    r = r / lb.scale

    return Circle(cx=cx, cy=cy, r=r, confidence=det.confidence, class_name=class_name_for(det.class_id, class_names))


def remap(detections: Iterable[Detection], lb: LetterboxResult, class_names: Sequence[str]) -> List[Circle]:
    return [to_circle(d, lb, class_names) for d in detections]
