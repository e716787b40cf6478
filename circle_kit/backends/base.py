from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np


Shape = Tuple[Optional[int], ...]


class InferenceEngine(ABC):
    """
    Owned handle to a loaded model.

    Implementations must allow concurrent `run` calls if the detector holding them
    is shared between threads; the pipeline itself adds no locking.
    """

    @abstractmethod
    def input_names(self) -> List[str]:
        ...

    @abstractmethod
    def output_names(self) -> List[str]:
        ...

    def input_shape(self, name: str) -> Shape:
        """Declared shape of an input; None marks a dynamic dim. Unknown by default."""
        return ()

    @abstractmethod
    def run(self, inputs: Mapping[str, np.ndarray]) -> Dict[str, np.ndarray]:
        """Forward pass. Returns every output keyed by name, in model order."""

    def close(self) -> None:
        pass
