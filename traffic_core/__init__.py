"""
traffic_core: Core modules for the traffic flow tracker.

Submodules:
- geometry: box centroid / IoU helpers.
- config: TrackerConfig and YAML loading.
- tracker_iou: Greedy IoU tracker with speed, lane and violation annotations.
- violations: Dominant-flow, speeding and wrong-way rules.
- replay: Run recorded detection frames through a tracker.
- logger: Logging setup for entry points.

The tracker has no knowledge of images, network calls or storage; it only
consumes per-frame detection dicts.
"""

__all__ = [
    "geometry",
    "config",
    "tracker_iou",
    "violations",
    "replay",
    "logger",
]
