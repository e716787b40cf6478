from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import numpy as np

from .detector import CircleDetector
from .errors import CircleKitError


logger = logging.getLogger(__name__)


def check_model_file(path: Union[str, Path]) -> bool:
    p = Path(path)
    if not p.is_file():
        logger.error("Model file does not exist at path: %s", p)
        return False
    size = p.stat().st_size
    if size == 0:
        logger.error("Model file is empty: %s", p)
        return False
    logger.info("Model file found: %s (%d bytes)", p, size)
    return True


def validate_detector(detector: CircleDetector, size: int = 320) -> bool:
    """
    Smoke-test a detector on an all-black square frame.

    Any number of circles counts as success; only a raised pipeline error fails.
    """

    blank = np.zeros((size, size, 3), dtype=np.uint8)
    try:
        circles = detector.run(blank)
    except CircleKitError as e:
        logger.error("Model validation failed: %s", e)
        return False
    logger.info("Model validation successful - detected %d circles", len(circles))
    return True
