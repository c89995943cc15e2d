from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path.resolve()}")
    with config_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get(cfg: Dict[str, Any], key: str, default: Any = None) -> Any:
    """
    Dot-access helper:
      get(cfg, "tracking.speed_limit", 80)
    """
    cur: Any = cfg
    for part in key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


@dataclass
class TrackerConfig:
    """
    Tunables for FlowTracker. Defaults match the demo deployment.

    speed_scale maps vertical travel per update (normalized screen units)
    to a km/h-like figure. It is NOT a calibrated physical speed.
    """
    iou_threshold: float = 0.15          # min IoU to continue a track
    max_missing_frames: int = 50         # evict once missed more than this
    history_len: int = 10                # centroid FIFO length
    speed_scale: float = 1.5
    speed_limit: float = 80.0            # demonstration threshold
    lane_change_threshold: float = 0.03  # fraction of frame width
    lane_history_depth: int = 4
    moving_threshold: float = 0.001      # min |vy| to count toward dominant flow
    wrong_way_threshold: float = 0.005
    box_scale: float = 1000.0
    trackable_kind: str = "vehicle"

    def __post_init__(self):
        for name in ("iou_threshold", "speed_scale", "speed_limit", "lane_change_threshold",
                     "moving_threshold", "wrong_way_threshold"):
            if float(getattr(self, name)) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)!r}")
        if self.iou_threshold > 1:
            raise ValueError(f"iou_threshold must be <= 1, got {self.iou_threshold!r}")
        if self.max_missing_frames < 0:
            raise ValueError("max_missing_frames must be >= 0")
        if self.history_len < 1 or self.lane_history_depth < 1:
            raise ValueError("history_len and lane_history_depth must be >= 1")
        if self.box_scale <= 0:
            raise ValueError("box_scale must be > 0")

    @classmethod
    def from_cfg(cls, cfg: Dict[str, Any], section: str = "tracking") -> "TrackerConfig":
        """Build from the `tracking:` block of a loaded YAML dict. Unknown keys are ignored."""
        block = get(cfg, section, {}) or {}
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in block.items() if k in known}
        return cls(**kwargs)
