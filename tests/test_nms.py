import unittest

import numpy as np

from circle_kit.nms import NMSConfig, iou, nms, suppress
from circle_kit.types import Detection


def _det(x1, y1, x2, y2, conf, cls=0) -> Detection:
    return Detection(x1=float(x1), y1=float(y1), x2=float(x2), y2=float(y2), confidence=float(conf), class_id=cls)


class TestIoU(unittest.TestCase):
    def test_partial_overlap(self) -> None:
        self.assertAlmostEqual(iou(_det(0, 0, 10, 10, 1), _det(5, 0, 15, 10, 1)), 50 / 150)

    def test_touching_boxes_do_not_overlap(self) -> None:
        self.assertEqual(iou(_det(0, 0, 10, 10, 1), _det(10, 0, 20, 10, 1)), 0.0)

    def test_degenerate_boxes(self) -> None:
        self.assertEqual(iou(_det(0, 0, 0, 0, 1), _det(0, 0, 0, 0, 1)), 0.0)


class TestSuppress(unittest.TestCase):
    def test_overlap_above_threshold_keeps_higher_confidence(self) -> None:
        low = _det(1, 0, 11, 10, 0.6)
        high = _det(0, 0, 10, 10, 0.9)
        kept = suppress([low, high], NMSConfig(iou_threshold=0.48))
        self.assertEqual(kept, [high])

    def test_overlap_at_or_below_threshold_keeps_both(self) -> None:
        a = _det(0, 0, 10, 10, 0.9)
        b = _det(5, 0, 15, 10, 0.8)
        self.assertEqual(suppress([a, b], NMSConfig(iou_threshold=0.48)), [a, b])

        # IoU exactly 0.5 is not "greater than" a 0.5 threshold.
        c = _det(0, 0, 10, 20, 0.7)
        self.assertEqual(iou(a, c), 0.5)
        self.assertEqual(suppress([a, c], NMSConfig(iou_threshold=0.5)), [a, c])

    def test_output_is_descending_confidence(self) -> None:
        dets = [_det(0, 0, 5, 5, 0.2), _det(100, 100, 105, 105, 0.9), _det(50, 50, 55, 55, 0.5)]
        kept = suppress(dets, NMSConfig())
        self.assertEqual([d.confidence for d in kept], [0.9, 0.5, 0.2])

    def test_confidence_ties_keep_input_order(self) -> None:
        first = _det(0, 0, 10, 10, 0.5, cls=0)
        second = _det(0, 0, 10, 10, 0.5, cls=1)
        self.assertEqual(suppress([first, second], NMSConfig()), [first])
        self.assertEqual(suppress([second, first], NMSConfig()), [second])

        apart = [_det(i * 20, 0, i * 20 + 10, 10, 0.5, cls=i) for i in range(5)]
        self.assertEqual(suppress(apart, NMSConfig()), apart)

    def test_suppression_is_class_agnostic(self) -> None:
        a = _det(0, 0, 10, 10, 0.9, cls=0)
        b = _det(0, 0, 10, 10, 0.8, cls=1)
        self.assertEqual(suppress([a, b], NMSConfig()), [a])

    def test_idempotent_on_its_own_output(self) -> None:
        rng = np.random.default_rng(11)
        dets = []
        for _ in range(60):
            x, y = rng.uniform(0, 300, size=2)
            w, h = rng.uniform(5, 60, size=2)
            dets.append(_det(x, y, x + w, y + h, rng.uniform(0.1, 1.0)))
        cfg = NMSConfig(iou_threshold=0.48)
        once = suppress(dets, cfg)
        self.assertEqual(suppress(once, cfg), once)

    def test_empty_input(self) -> None:
        self.assertEqual(suppress([], NMSConfig()), [])
        self.assertEqual(nms(np.empty((0, 4)), np.empty((0,)), NMSConfig()).shape, (0,))

    def test_max_detections_caps_survivors(self) -> None:
        dets = [_det(i * 20, 0, i * 20 + 10, 10, 1.0 - i * 0.1) for i in range(5)]
        kept = suppress(dets, NMSConfig(max_detections=2))
        self.assertEqual(kept, dets[:2])

    def test_greedy_chain(self) -> None:
        # b overlaps a and c heavily, a and c do not overlap: a suppresses b, c survives.
        a = _det(0, 0, 10, 10, 0.9)
        b = _det(2, 0, 12, 10, 0.8)
        c = _det(11, 0, 21, 10, 0.7)
        self.assertEqual(suppress([a, b, c], NMSConfig(iou_threshold=0.48)), [a, c])


if __name__ == "__main__":
    unittest.main()
