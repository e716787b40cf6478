from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .metadata import load_class_names
from .postprocess import Layout


DEFAULT_CLASS_NAMES: Tuple[str, ...] = ("ROI", "RedCenter")


@dataclass(frozen=True)
class DetectorConfig:
    """
    Fixed pipeline settings; immutable once a detector is built.
    """

    input_size: int = 320
    conf_threshold: float = 0.1
    iou_threshold: float = 0.48
    class_names: Tuple[str, ...] = DEFAULT_CLASS_NAMES
    # Forces the output tensor interpretation; None measures it per call.
    layout: Optional[Layout] = None
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.input_size, bool) or not isinstance(self.input_size, int) or self.input_size <= 0:
            raise ValueError("input_size must be a positive integer")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if not self.class_names:
            raise ValueError("class_names must not be empty")
        if any(not isinstance(n, str) or not n for n in self.class_names):
            raise ValueError("class_names must be non-empty strings")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError("max_detections must be >= 1 if provided")
        # Accept lists from callers but keep the frozen value hashable.
        object.__setattr__(self, "class_names", tuple(self.class_names))
        if self.layout is not None:
            object.__setattr__(self, "layout", Layout(self.layout))


def _require_number(payload: Dict[str, Any], key: str) -> float:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def load_detector_config(path: Path) -> DetectorConfig:
    """
    Read a detector profile (JSON). Omitted optional keys fall back to DetectorConfig defaults.

    Class names come from `class_names` or from a `metadata` file path resolved
    relative to the profile; giving both is an error.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detector profile not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector profile JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector profile must be a JSON object")

    allowed = {
        "schema_version",
        "input_size",
        "conf_threshold",
        "iou_threshold",
        "class_names",
        "metadata",
        "layout",
        "max_detections",
        "notes",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector profile keys: {unknown}")

    if _require_int(payload, "schema_version") != 1:
        raise ValueError("detector profile schema_version must be 1")

    kwargs: Dict[str, Any] = {}
    if "input_size" in payload:
        kwargs["input_size"] = _require_int(payload, "input_size")
    if "conf_threshold" in payload:
        kwargs["conf_threshold"] = _require_number(payload, "conf_threshold")
    if "iou_threshold" in payload:
        kwargs["iou_threshold"] = _require_number(payload, "iou_threshold")
    if "max_detections" in payload and payload["max_detections"] is not None:
        kwargs["max_detections"] = _require_int(payload, "max_detections")

    if "class_names" in payload and "metadata" in payload:
        raise ValueError("Give either class_names or metadata, not both")
    if "class_names" in payload:
        names = payload["class_names"]
        if not isinstance(names, list):
            raise ValueError("class_names must be a list of strings")
        kwargs["class_names"] = tuple(names)
    elif "metadata" in payload:
        meta = payload["metadata"]
        if not isinstance(meta, str):
            raise ValueError("metadata must be a path string")
        meta_path = Path(meta)
        if not meta_path.is_absolute():
            meta_path = path.parent / meta_path
        kwargs["class_names"] = tuple(load_class_names(meta_path))

    layout = payload.get("layout")
    if layout is not None:
        try:
            kwargs["layout"] = Layout(layout)
        except ValueError as exc:
            raise ValueError(f"layout must be one of {[m.value for m in Layout]}") from exc

    notes = payload.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValueError("notes must be a string if provided")

    return DetectorConfig(**kwargs)
