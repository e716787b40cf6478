from __future__ import annotations

import argparse
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List

import cv2
import numpy as np

from circle_kit import DetectorConfig, OnnxCircleDetector, load_detector, read_image, remap, suppress
from circle_kit.image_io import from_bgr


STAGES = ("preprocess", "inference", "postprocess")


@dataclass(frozen=True)
class StageLatency:
    stage: str
    samples: int
    mean_ms: float
    p50_ms: float
    p90_ms: float
    p95_ms: float

    @classmethod
    def from_seconds(cls, stage: str, durations_s: List[float]) -> "StageLatency":
        if not durations_s:
            raise ValueError(f"No samples recorded for stage {stage!r}.")
        ms = np.asarray(durations_s, dtype=np.float64) * 1000.0
        # np.percentile interpolates linearly between the closest ranks.
        p50, p90, p95 = np.percentile(ms, [50.0, 90.0, 95.0])
        return cls(stage, int(ms.size), float(ms.mean()), float(p50), float(p90), float(p95))

    def __str__(self) -> str:
        return (
            f"{self.stage}: n={self.samples} mean={self.mean_ms:.3f}ms "
            f"p50={self.p50_ms:.3f}ms p90={self.p90_ms:.3f}ms p95={self.p95_ms:.3f}ms"
        )


def _iter_frames(args: argparse.Namespace) -> Iterable[np.ndarray]:
    if args.image is not None:
        img = read_image(args.image)
        for _ in range(int(args.repeats)):
            yield img
        return

    cap = cv2.VideoCapture(args.video)
    if not cap.isOpened():
        raise FileNotFoundError(f"Could not open video: {args.video}")
    try:
        while True:
            ok, frame = cap.read()
            if not ok or frame is None:
                break
            yield from_bgr(frame)
    finally:
        cap.release()


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark circle detector stages: preprocess, inference, postprocess.")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--image", default=None, help="Path to an input image (repeated N times).")
    src.add_argument("--video", default=None, help="Path to an input video file.")
    parser.add_argument("--model", default="models/model.onnx", help="Path to the ONNX model.")
    parser.add_argument("--imgsz", type=int, default=320, help="Model input side length.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--conf", type=float, default=0.1, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.48, help="IoU threshold for NMS.")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N recorded frames (0 = no limit).")
    parser.add_argument("--warmup", type=int, default=10, help="Warmup frames to run but not record.")
    parser.add_argument("--repeats", type=int, default=50, help="For --image only: number of repeats.")
    args = parser.parse_args()

    if args.max_frames < 0:
        raise ValueError("--max-frames must be >= 0")
    if args.warmup < 0:
        raise ValueError("--warmup must be >= 0")
    if args.repeats < 1:
        raise ValueError("--repeats must be >= 1")
    if args.imgsz < 32:
        raise ValueError("--imgsz must be >= 32")

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    cfg = DetectorConfig(input_size=int(args.imgsz), conf_threshold=float(args.conf), iou_threshold=float(args.iou))
    detector = load_detector(args.model, config=cfg, onnx_providers=onnx_providers)
    if not isinstance(detector, OnnxCircleDetector):
        raise RuntimeError("Benchmark needs an engine-backed detector.")

    timings: Dict[str, List[float]] = {stage: [] for stage in STAGES}
    seen = 0

    with detector:
        for frame in _iter_frames(args):
            seen += 1
            t0 = time.perf_counter()
            prep = detector.preprocess(frame)
            t1 = time.perf_counter()
            outputs = detector.engine.run({detector.input_name: prep.tensor})
            t2 = time.perf_counter()
            kept = suppress(detector.decoder.decode(outputs), detector.nms_cfg)
            _ = remap(kept, prep.letterbox, cfg.class_names)
            t3 = time.perf_counter()

            if seen <= int(args.warmup):
                continue

            timings["preprocess"].append(t1 - t0)
            timings["inference"].append(t2 - t1)
            timings["postprocess"].append(t3 - t2)

            if args.max_frames and len(timings["preprocess"]) >= int(args.max_frames):
                break

    recorded = len(timings["preprocess"])
    if not recorded:
        raise RuntimeError("No benchmark samples collected (check input source / max-frames / warmup).")

    for stage in STAGES:
        print(StageLatency.from_seconds(stage, timings[stage]))
    print(f"frames_seen={seen} samples_recorded={recorded} warmup={int(args.warmup)}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
