import argparse
import json
import logging
from dataclasses import replace

from circle_kit import (
    DetectorConfig,
    check_model_file,
    load_detector,
    load_detector_config,
    read_image,
    resolve_path,
    setup_logging,
    validate_detector,
)


logger = logging.getLogger("detect_circles")


def main() -> int:
    parser = argparse.ArgumentParser(description="Detect circular targets in a still frame and print them as JSON.")
    parser.add_argument("--image", default=None, help="Path to an input image (JPEG/PNG).")
    parser.add_argument("--model", default="models/model.onnx", help="Path to the ONNX model.")
    parser.add_argument("--config", default=None, help="Optional detector profile (JSON).")
    parser.add_argument("--imgsz", type=int, default=None, help="Override model input side length.")
    parser.add_argument("--conf", type=float, default=None, help="Override confidence threshold.")
    parser.add_argument("--iou", type=float, default=None, help="Override IoU threshold for NMS.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CoreMLExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--mock", action="store_true", help="Use the deterministic mock detector (no model needed).")
    parser.add_argument("--check-model", action="store_true", help="Check the model file and run a blank-frame smoke test.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...).")
    parser.add_argument("--log-file", default=None, help="Optional log file path.")
    args = parser.parse_args()

    setup_logging(args.log_level, args.log_file)

    cfg = load_detector_config(resolve_path(args.config)) if args.config else DetectorConfig()
    overrides = {}
    if args.imgsz is not None:
        if args.imgsz < 32:
            raise ValueError("--imgsz must be >= 32")
        overrides["input_size"] = int(args.imgsz)
    if args.conf is not None:
        overrides["conf_threshold"] = float(args.conf)
    if args.iou is not None:
        overrides["iou_threshold"] = float(args.iou)
    if overrides:
        cfg = replace(cfg, **overrides)

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    if args.check_model and not args.mock and not check_model_file(resolve_path(args.model)):
        return 1

    with load_detector(args.model, config=cfg, onnx_providers=onnx_providers, mock=args.mock) as detector:
        if args.check_model:
            return 0 if validate_detector(detector, size=cfg.input_size) else 1

        if args.image is None:
            parser.error("--image is required unless --check-model is given")

        image = read_image(args.image)
        circles = detector.detect(image)
        logger.info("Detection completed, found %d targets", len(circles))
        print(json.dumps([c.as_dict() for c in circles], indent=2))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
