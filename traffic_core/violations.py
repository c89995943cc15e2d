from __future__ import annotations
from typing import Dict, Iterable, List, Tuple, Any

import numpy as np

SPEEDING = "Speeding"
WRONG_LANE = "Wrong Lane"


def dominant_flow(tracks: Iterable[Any], moving_thresh: float = 0.001) -> float:
    """
    Mean vertical velocity of tracks refreshed this cycle that are visibly moving.
    0.0 when nothing qualifies.
    """
    vys = [t.vertical_velocity for t in tracks
           if t.missing_frames == 0 and abs(t.vertical_velocity) > moving_thresh]
    if not vys:
        return 0.0
    return float(np.mean(vys))


class ViolationEngine:
    """
    Per-cycle rule checks on tracked vehicles:
      - speeding: track speed above speed_limit
      - wrong way: moving against the dominant vertical flow

    Flags are instantaneous: no hysteresis, one noisy frame can toggle them.
    """
    def __init__(
        self,
        speed_limit: float = 80.0,
        *,
        wrong_way_thresh: float = 0.005,
        moving_thresh: float = 0.001,
    ):
        self.speed_limit = float(speed_limit)
        self.wrong_way_thresh = float(wrong_way_thresh)
        self.moving_thresh = float(moving_thresh)

    def is_wrong_way(self, vy: float, flow: float) -> bool:
        # both must move with discernible magnitude
        if abs(flow) <= self.wrong_way_thresh or abs(vy) <= self.wrong_way_thresh:
            return False
        return (vy > 0) != (flow > 0)

    def step(self, pairs: List[Tuple[Dict, Any]], tracks: Iterable[Any]) -> float:
        """
        pairs: (detection, track) for every detection annotated this cycle.
        tracks: the whole live store, used for the dominant flow.
        Sets is_speeding / is_wrong_way on each detection and returns the flow.
        """
        flow = dominant_flow(tracks, self.moving_thresh)
        for det, trk in pairs:
            det["is_speeding"] = trk.speed > self.speed_limit
            det["is_wrong_way"] = self.is_wrong_way(trk.vertical_velocity, flow)
        return flow


def collect_violations(detections: Iterable[Dict], speed_limit: float = 80.0) -> List[Dict]:
    """
    Turn tracker flags into violation records the reporting side can merge
    with model-reported violations.
    """
    out: List[Dict] = []
    for d in detections:
        tid = d.get("track_id")
        if tid is None:
            continue
        if d.get("is_speeding"):
            out.append({
                "type": SPEEDING,
                "description": f"Vehicle ID:{tid} moving at {d.get('estimated_speed', 0)}km/h "
                               f"(Limit: {speed_limit:g})",
                "severity": "High",
                "track_id": tid,
            })
        if d.get("is_wrong_way"):
            out.append({
                "type": WRONG_LANE,
                "description": f"Vehicle ID:{tid} detected moving against dominant traffic flow.",
                "severity": "High",
                "track_id": tid,
            })
    return out
