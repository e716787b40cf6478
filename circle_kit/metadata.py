from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Union


def load_class_names(metadata_path: Union[str, Path]) -> List[str]:
    """
    Load ordered class names from the lightweight `metadata.yaml` format exported with the model.

    Both forms of the `names:` block are accepted:

        names:
          0: ROI
          1: RedCenter

        names:
          - ROI
          - RedCenter

    The returned list index is the class id; ids must be contiguous from 0.
    This function intentionally avoids adding a PyYAML dependency.
    """

    by_id: Dict[int, str] = {}
    listed: List[str] = []
    in_names = False

    with open(metadata_path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue
            if line.startswith("-"):
                listed.append(line[1:].strip().strip("'").strip('"'))
                continue
            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            if not left.isdigit():
                continue
            by_id[int(left)] = right.strip().strip("'").strip('"')

    if listed:
        return listed

    expected = list(range(len(by_id)))
    if sorted(by_id) != expected:
        raise ValueError(f"Class ids in {metadata_path} must be contiguous from 0, got {sorted(by_id)}")
    return [by_id[i] for i in expected]
