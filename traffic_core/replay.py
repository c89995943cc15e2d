from __future__ import annotations
from typing import Dict, Iterable, Iterator, List, Any
import json
import logging
from pathlib import Path

from .tracker_iou import FlowTracker
from .violations import collect_violations

log = logging.getLogger(__name__)


def load_frames(path: str | Path) -> List[Dict[str, Any]]:
    """
    Read recorded frames. Accepts a JSON list or JSON Lines, one frame per
    line: {"timestamp": int, "detections": [...]}.
    """
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix == ".jsonl":
        return [json.loads(line) for line in text.splitlines() if line.strip()]
    data = json.loads(text)
    if isinstance(data, dict):
        data = data.get("frames", [])
    return list(data)


def replay(
    frames: Iterable[Dict[str, Any]],
    tracker: FlowTracker,
    *,
    reset_each: bool = False,
) -> Iterator[Dict[str, Any]]:
    """
    Feed frames through the tracker in order.
    reset_each=True treats every frame as an unrelated batch item.
    Yields {"timestamp", "detections", "violations", "active_tracks", "flow"}.
    """
    tracker.reset()
    for idx, fr in enumerate(frames):
        if reset_each:
            tracker.reset()
        ts = int(fr.get("timestamp", idx))
        dets = tracker.update(fr.get("detections") or [], ts)
        violations = collect_violations(dets, tracker.cfg.speed_limit)
        if violations:
            log.info("frame %d: %d violation(s)", idx, len(violations))
        yield {
            "timestamp": ts,
            "detections": dets,
            "violations": violations,
            "active_tracks": tracker.active_track_count(),
            "flow": tracker.last_flow,
        }
