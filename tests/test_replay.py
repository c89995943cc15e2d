import json

from traffic_core.replay import load_frames, replay
from traffic_core.tracker_iou import FlowTracker


def car(box):
    return {"label": "car", "kind": "vehicle", "box": list(box)}


FRAMES = [
    {"timestamp": 0, "detections": [car([400, 400, 500, 500])]},
    {"timestamp": 40, "detections": [car([460, 400, 560, 500])]},
    {"timestamp": 80, "detections": [car([520, 400, 620, 500])]},
]


def test_replay_keeps_identity_across_stream():
    res = list(replay(FRAMES, FlowTracker()))
    assert [r["detections"][0]["track_id"] for r in res] == [1, 1, 1]
    assert [r["timestamp"] for r in res] == [0, 40, 80]
    assert res[0]["violations"] == []
    assert res[1]["violations"][0]["type"] == "Speeding"
    assert res[2]["active_tracks"] == 1


def test_replay_batch_mode_resets_between_items():
    res = list(replay(FRAMES, FlowTracker(), reset_each=True))
    assert [r["detections"][0]["track_id"] for r in res] == [1, 1, 1]
    assert all(r["detections"][0]["estimated_speed"] == 0 for r in res)
    assert all(r["violations"] == [] for r in res)


def test_replay_starts_from_clean_tracker():
    tr = FlowTracker()
    tr.update([car([0, 0, 50, 50])], 0)
    res = list(replay(FRAMES[:1], tr))
    assert res[0]["detections"][0]["track_id"] == 1


def test_load_frames_json_and_jsonl(tmp_path):
    p = tmp_path / "frames.json"
    p.write_text(json.dumps({"frames": FRAMES}), encoding="utf-8")
    assert load_frames(p) == FRAMES

    q = tmp_path / "frames.jsonl"
    q.write_text("\n".join(json.dumps(f) for f in FRAMES) + "\n", encoding="utf-8")
    assert load_frames(q) == FRAMES
