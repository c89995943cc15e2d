from __future__ import annotations
from typing import Dict, List, Tuple, Optional, Sequence
from collections import deque
import logging
import math

from .config import TrackerConfig
from .geometry import centroid, iou, is_box
from .violations import ViolationEngine

log = logging.getLogger(__name__)

LANE_STABLE = "Stable"
LANE_CHANGE = "Lane Change"
LANE_MERGING = "Merging"  # reserved; nothing produces it yet


class Track:
    """
    One vehicle followed across frames.
    Box is yxyx on the detector's 0..1000 grid, centroid is normalized (x, y).
    """
    def __init__(self, track_id: int, det: Dict, timestamp: int, cfg: TrackerConfig):
        self.id = track_id
        self.label: str = det.get("label", "")
        self.box: Tuple[float, ...] = tuple(det["box"])
        self.cfg = cfg
        self.centroid = centroid(self.box, cfg.box_scale)
        self.history: deque = deque([self.centroid], maxlen=cfg.history_len)
        self.missing_frames = 0   # consecutive cycles without match
        self.speed = 0
        self.vertical_velocity = 0.0  # + is down the frame
        self.lane_status = LANE_STABLE
        self.created_at = timestamp

    def mark_missed(self):
        self.missing_frames += 1

    def update(self, det: Dict):
        new_box = tuple(det["box"])
        new_c = centroid(new_box, self.cfg.box_scale)

        # Vertical travel in grid units; same as (new_c.y - old_c.y) * box_scale
        # but exact for integer boxes.
        dy_units = ((new_box[0] + new_box[2]) - (self.box[0] + self.box[2])) / 2.0
        self.vertical_velocity = dy_units / self.cfg.box_scale
        self.speed = int(math.floor(abs(dy_units) * self.cfg.speed_scale))

        self.history.append(new_c)
        self.lane_status = self._lane_status(new_c[0])

        self.box = new_box
        self.centroid = new_c
        self.label = det.get("label", self.label)
        self.missing_frames = 0

    def _lane_status(self, x_now: float) -> str:
        if len(self.history) < 2:
            return self.lane_status
        depth = min(len(self.history), self.cfg.lane_history_depth)
        x_then = self.history[-depth][0]
        if abs(x_now - x_then) > self.cfg.lane_change_threshold:
            return LANE_CHANGE
        return LANE_STABLE

    def annotate(self, det: Dict):
        det["track_id"] = self.id
        det["estimated_speed"] = self.speed
        det["lane_event"] = self.lane_status


class FlowTracker:
    """
    IoU tracker for per-frame vehicle detections:
      - Greedy track-major association by IoU (tracks in creation order)
      - Speed from vertical centroid travel, lane change from lateral drift
      - Speeding / wrong-way flags relative to the dominant flow
      - Track birth on unmatched detections, death after max_missing_frames

    NOTE: Greedy, not Hungarian; an early track may claim a detection a later
    track matches better. Not thread-safe: one instance per stream, serialize
    calls to update().
    """
    def __init__(self, cfg: Optional[TrackerConfig] = None):
        self.cfg = cfg or TrackerConfig()
        self.engine = ViolationEngine(
            self.cfg.speed_limit,
            wrong_way_thresh=self.cfg.wrong_way_threshold,
            moving_thresh=self.cfg.moving_threshold,
        )
        self._next_id = 1
        self.tracks: Dict[int, Track] = {}  # insertion order == creation order
        self.last_flow = 0.0

    def _trackable(self, det: Dict) -> bool:
        box = det.get("box")
        return det.get("kind") == self.cfg.trackable_kind and is_box(box)

    def _greedy_match(self, detections: Sequence[Dict]) -> Tuple[List[Tuple[int, int]], List[int]]:
        """
        Return ([(det_index, track_id)], unmatched_det_indices).
        Each track takes its best remaining detection if IoU > threshold.
        """
        pool = set(range(len(detections)))
        pairs: List[Tuple[int, int]] = []
        for tid, trk in self.tracks.items():
            best = -1
            best_val = 0.0
            for i in sorted(pool):
                v = iou(trk.box, detections[i]["box"])
                if v > self.cfg.iou_threshold and v > best_val:
                    best_val = v; best = i
            if best >= 0:
                pool.discard(best)
                pairs.append((best, tid))
        return pairs, sorted(pool)

    def update(self, detections: Sequence[Dict], timestamp: int) -> List[Dict]:
        """
        Track one frame.
        Each detection is a dict with keys: label, kind, box ([y_min, x_min, y_max, x_max]).
        Returns copies of the detections in input order; trackable ones gain
        track_id, estimated_speed, lane_event, is_speeding, is_wrong_way.
        Non-vehicle or box-less detections come back unchanged.
        """
        out = [dict(d) for d in detections]
        valid = [d for d in out if self._trackable(d)]

        # 1) Age everything; a match resets the counter
        for trk in self.tracks.values():
            trk.mark_missed()

        # 2) Associate
        matches, unmatched = self._greedy_match(valid)

        # 3) Update matched, create new
        annotated: List[Tuple[Dict, Track]] = []
        for di, tid in matches:
            trk = self.tracks[tid]
            trk.update(valid[di])
            trk.annotate(valid[di])
            annotated.append((valid[di], trk))

        for di in unmatched:
            trk = Track(self._next_id, valid[di], timestamp, self.cfg)
            self.tracks[trk.id] = trk
            self._next_id += 1
            trk.annotate(valid[di])
            annotated.append((valid[di], trk))
            log.debug("track %d born (%s) at t=%s", trk.id, trk.label, timestamp)

        # 4) Violations against the dominant flow
        self.last_flow = self.engine.step(annotated, self.tracks.values())

        # 5) Evict stale
        dead = [tid for tid, trk in self.tracks.items()
                if trk.missing_frames > self.cfg.max_missing_frames]
        for tid in dead:
            del self.tracks[tid]
        if dead:
            log.debug("evicted tracks %s", dead)

        return out

    def reset(self) -> None:
        """Drop all tracks and restart ids at 1. Call on any stream change."""
        if self.tracks or self._next_id != 1:
            log.info("tracker reset (%d tracks dropped)", len(self.tracks))
        self.tracks = {}
        self._next_id = 1
        self.last_flow = 0.0

    def active_track_count(self) -> int:
        return sum(1 for t in self.tracks.values() if t.missing_frames == 0)
