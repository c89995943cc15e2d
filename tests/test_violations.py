from types import SimpleNamespace

from traffic_core.tracker_iou import FlowTracker
from traffic_core.violations import ViolationEngine, collect_violations, dominant_flow


def car(box):
    return {"label": "car", "kind": "vehicle", "box": list(box)}


def lane(col, y):
    x = col * 150
    return car([y, x, y + 100, x + 50])


def fake_track(vy, missing=0, speed=0):
    return SimpleNamespace(vertical_velocity=vy, missing_frames=missing, speed=speed)


def test_dominant_flow_ignores_stale_and_still_tracks():
    tracks = [
        fake_track(0.02),
        fake_track(0.04),
        fake_track(0.0005),
        fake_track(-0.5, missing=3),
    ]
    assert abs(dominant_flow(tracks) - 0.03) < 1e-12


def test_dominant_flow_empty_is_zero():
    assert dominant_flow([]) == 0.0
    assert dominant_flow([fake_track(0.0)]) == 0.0


def test_wrong_way_needs_clear_motion():
    eng = ViolationEngine()
    assert eng.is_wrong_way(-0.02, 0.02)
    assert not eng.is_wrong_way(0.02, 0.02)
    assert not eng.is_wrong_way(-0.004, 0.02)
    assert not eng.is_wrong_way(-0.02, 0.004)


def test_only_counterflow_vehicle_is_wrong_way():
    tr = FlowTracker()
    start = [lane(c, 400) for c in range(6)]
    tr.update(start, 1)

    nxt = [lane(c, 420) for c in range(5)] + [lane(5, 380)]
    out = tr.update(nxt, 2)

    assert [d["track_id"] for d in out] == [1, 2, 3, 4, 5, 6]
    assert abs(tr.last_flow - (0.1 - 0.02) / 6) < 1e-9
    assert [d["is_wrong_way"] for d in out] == [False] * 5 + [True]
    assert not any(d["is_speeding"] for d in out)


def test_speeding_and_wrong_way_can_both_fire():
    tr = FlowTracker()
    tr.update([lane(c, 400) for c in range(6)], 1)
    out = tr.update([lane(c, 420) for c in range(5)] + [lane(5, 340)], 2)
    assert out[5]["is_wrong_way"] is True
    assert out[5]["is_speeding"] is True
    assert out[5]["estimated_speed"] == 90


def test_no_flow_no_wrong_way():
    tr = FlowTracker()
    tr.update([lane(0, 400)], 1)
    out = tr.update([lane(0, 380)], 2)
    # a lone mover defines the flow itself
    assert out[0]["is_wrong_way"] is False


def test_collect_violations_builds_records():
    dets = [
        {"label": "car", "kind": "vehicle", "track_id": 3, "estimated_speed": 90,
         "is_speeding": True, "is_wrong_way": True},
        {"label": "car", "kind": "vehicle", "track_id": 4, "estimated_speed": 10,
         "is_speeding": False, "is_wrong_way": False},
        {"label": "person", "kind": "pedestrian"},
    ]
    recs = collect_violations(dets, speed_limit=80)
    assert [r["type"] for r in recs] == ["Speeding", "Wrong Lane"]
    assert recs[0]["description"] == "Vehicle ID:3 moving at 90km/h (Limit: 80)"
    assert all(r["severity"] == "High" and r["track_id"] == 3 for r in recs)
