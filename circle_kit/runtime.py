from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

from .config import DetectorConfig
from .detector import CircleDetector, make_detector


PathLike = Union[str, Path]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", "setup.py", ".git", "requirements.txt"),
) -> Path:
    """
    Walk up from `start` (default: cwd) to the first directory holding a marker file.

    Model and profile paths in the scripts are written relative to this directory,
    e.g. `models/model.onnx`. Falls back to `start` itself.
    """

    here = Path(start).resolve() if start is not None else Path.cwd().resolve()
    if here.is_file():
        here = here.parent

    for candidate in (here, *here.parents):
        if any((candidate / m).exists() for m in markers):
            return candidate
    return here


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Absolute model/profile path. Relative paths hang off `root`, or off the
    project root when `root` is "auto" or None.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    base = find_project_root() if root in ("auto", None) else Path(root).resolve()
    return (base / p).resolve()


def load_detector(
    model: Optional[Union[PathLike, bytes]] = None,
    *,
    config: DetectorConfig = DetectorConfig(),
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    onnx_providers: Optional[Sequence[str]] = None,
    mock: bool = False,
) -> CircleDetector:
    """
    Build a detector for a model on disk or in memory.

    Typical usage:
        detector = load_detector("models/model.onnx")  # resolves from project root by default
        circles = detector.detect(frame_rgb)

    Args:
        model: path to the model file, or serialized model bytes
        backend: "onnxruntime" or None to infer from the file extension (bytes default to onnxruntime)
        root: base directory for resolving relative model paths ("auto" uses best-effort project root)
        mock: return the deterministic mock detector; `model` is ignored
    """

    if mock:
        return make_detector(None, config, mock=True)
    if model is None:
        raise ValueError("model is required unless mock=True")

    chosen = backend
    source: Union[Path, bytes]
    if isinstance(model, (bytes, bytearray)):
        source = bytes(model)
        chosen = chosen or "onnxruntime"
    else:
        source = resolve_path(model, root=root)
        if chosen is None:
            suffix = source.suffix.lower()
            if suffix == ".onnx":
                chosen = "onnxruntime"
            else:
                raise ValueError(
                    f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
                )

    chosen = chosen.lower()
    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        engine = OnnxRuntimeBackend(source, OnnxRuntimeBackendConfig(providers=onnx_providers))
        return make_detector(engine, config)

    raise ValueError(f"Unsupported backend: {backend!r}")
