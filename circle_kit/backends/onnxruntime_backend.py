from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from ..errors import InferenceError, ModelLoadError
from .base import InferenceEngine, Shape


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CoreMLExecutionProvider", "CPUExecutionProvider"])
    - log_severity: ORT's own log level (0 verbose .. 4 fatal); warnings by default
    """

    providers: Optional[Sequence[str]] = None
    log_severity: int = 2


class OnnxRuntimeBackend(InferenceEngine):
    """
    ONNX Runtime engine loaded from a model file or from serialized model bytes.

    ORT sessions accept concurrent `run` calls, so one instance can serve several threads.
    """

    def __init__(self, model: Union[PathLike, bytes], cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        if isinstance(model, (bytes, bytearray)):
            if not model:
                raise ModelLoadError("Model bytes are empty.")
            self.model_path: Optional[Path] = None
            source: Union[str, bytes] = bytes(model)
            label = f"<{len(model)} bytes>"
        else:
            self.model_path = Path(model)
            if not self.model_path.is_file():
                raise ModelLoadError(f"Model file not found: {self.model_path}")
            source = str(self.model_path)
            label = source

        sess_opts = ort.SessionOptions()
        sess_opts.log_severity_level = cfg.log_severity
        providers = list(cfg.providers) if cfg.providers is not None else None
        try:
            self.session = ort.InferenceSession(source, sess_options=sess_opts, providers=providers)
        except Exception as e:
            raise ModelLoadError(f"Failed to load ONNX model {label}: {e}") from e

        logger.info(
            "Loaded ONNX model %s (inputs=%s, outputs=%s, providers=%s)",
            label,
            self.input_names(),
            self.output_names(),
            list(self.providers_in_use),
        )

    def _open_session(self):
        if self.session is None:
            raise InferenceError("ONNX Runtime session is closed.")
        return self.session

    @property
    def providers_in_use(self) -> Sequence[str]:
        # Priority order for this session; may differ from the requested list.
        return tuple(self._open_session().get_providers())

    def input_names(self) -> List[str]:
        return [i.name for i in self._open_session().get_inputs()]

    def output_names(self) -> List[str]:
        return [o.name for o in self._open_session().get_outputs()]

    def input_shape(self, name: str) -> Shape:
        for i in self._open_session().get_inputs():
            if i.name == name:
                return tuple(d if isinstance(d, int) else None for d in i.shape)
        raise KeyError(name)

    def run(self, inputs: Mapping[str, np.ndarray]) -> Dict[str, np.ndarray]:
        session = self._open_session()
        names = self.output_names()
        try:
            outputs = session.run(names, dict(inputs))
        except Exception as e:
            raise InferenceError(f"ONNX Runtime forward pass failed: {e}") from e
        return dict(zip(names, outputs))

    def close(self) -> None:
        self.session = None
