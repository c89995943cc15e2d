from traffic_core.geometry import centroid, iou


def test_centroid_is_normalized_xy():
    x, y = centroid([400, 200, 500, 300])
    assert x == 0.25
    assert y == 0.45


def test_iou_identical_box_is_one():
    assert iou([100, 100, 200, 300], [100, 100, 200, 300]) == 1.0


def test_iou_is_symmetric_and_bounded():
    boxes = [
        [0, 0, 100, 100],
        [50, 50, 150, 150],
        [400, 400, 500, 500],
        [430, 400, 530, 500],
        [0, 0, 1000, 1000],
        [90, 10, 95, 900],
    ]
    for a in boxes:
        for b in boxes:
            v = iou(a, b)
            assert v == iou(b, a)
            assert 0.0 <= v <= 1.0


def test_iou_partial_overlap():
    # 50x50 overlap, union 100*100*2 - 2500
    assert abs(iou([0, 0, 100, 100], [50, 50, 150, 150]) - 2500 / 17500) < 1e-9


def test_iou_disjoint_and_touching_are_zero():
    assert iou([0, 0, 100, 100], [200, 200, 300, 300]) == 0.0
    assert iou([0, 0, 100, 100], [100, 0, 200, 100]) == 0.0


def test_iou_degenerate_boxes_are_zero():
    assert iou([100, 100, 100, 100], [100, 100, 100, 100]) == 0.0
    assert iou([200, 200, 100, 100], [100, 100, 200, 200]) == 0.0
    assert iou([0, 0, 0, 500], [0, 0, 100, 500]) == 0.0
