from __future__ import annotations
from typing import Sequence, Tuple

Box = Sequence[float]  # y_min, x_min, y_max, x_max on the 0..1000 grid

BOX_SCALE = 1000.0


def centroid(box: Box, scale: float = BOX_SCALE) -> Tuple[float, float]:
    """Normalized (x, y) center of a yxyx box, both in 0..1."""
    y_min, x_min, y_max, x_max = box[:4]
    return ((x_min + x_max) / 2.0 / scale, (y_min + y_max) / 2.0 / scale)


def box_area(box: Box) -> float:
    y_min, x_min, y_max, x_max = box[:4]
    return (y_max - y_min) * (x_max - x_min)


def iou(a: Box, b: Box) -> float:
    """IoU for yxyx boxes. Degenerate inputs give 0.0."""
    ay1, ax1, ay2, ax2 = a[:4]
    by1, bx1, by2, bx2 = b[:4]

    inter_w = max(0, min(ax2, bx2) - max(ax1, bx1))
    inter_h = max(0, min(ay2, by2) - max(ay1, by1))
    inter = inter_w * inter_h
    if inter <= 0:
        return 0.0
    union = box_area(a) + box_area(b) - inter
    return (inter / union) if union > 0 else 0.0


def is_box(box) -> bool:
    """True for a list/tuple whose first four entries are real numbers."""
    if not isinstance(box, (list, tuple)) or len(box) < 4:
        return False
    return all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in box[:4])
