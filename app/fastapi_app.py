# app/fastapi_app.py
#!/usr/bin/env python3
from __future__ import annotations

import os, sys, threading, time
from typing import Dict, Any, List, Optional
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from traffic_core.config import TrackerConfig, load_yaml, get
from traffic_core.geometry import is_box
from traffic_core.logger import setup_logger
from traffic_core.tracker_iou import FlowTracker
from traffic_core.violations import collect_violations

load_dotenv()
log = setup_logger("traffic_core")

app = FastAPI(title="Traffic Flow Tracker API", version="1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=True, allow_methods=["*"], allow_headers=["*"]
)

# ---------- State ----------
class Session:
    """One tracker per stream; the lock serializes update() calls."""
    def __init__(self, cfg: TrackerConfig):
        self.tracker = FlowTracker(cfg)
        self.lock = threading.Lock()
        self.frames = 0
        self.last_seen = time.time()

class State:
    def __init__(self):
        self.cfg: Dict[str, Any] = {}
        self.tracker_cfg: TrackerConfig = TrackerConfig()
        self.sessions: Dict[str, Session] = {}
        self.session_ttl: float = 600.0  # seconds without frames before a session is dropped
        self._lock = threading.Lock()

    def _expire_idle(self, now: float) -> None:
        idle = [k for k, s in self.sessions.items() if now - s.last_seen > self.session_ttl]
        for k in idle:
            del self.sessions[k]
        if idle:
            log.info("expired idle sessions %s", idle)

    def session(self, sid: str, create: bool = True) -> Optional[Session]:
        with self._lock:
            s = self.sessions.get(sid)
            if s is None and create:
                self._expire_idle(time.time())
                s = Session(self.tracker_cfg)
                self.sessions[sid] = s
                log.info("session %s opened", sid)
            return s

STATE = State()

# ---------- Startup ----------
@app.on_event("startup")
def startup():
    cfg_path = os.getenv("TRACKER_CFG", "configs/track.yaml")
    STATE.cfg = load_yaml(cfg_path) if os.path.exists(cfg_path) else {}
    STATE.tracker_cfg = TrackerConfig.from_cfg(STATE.cfg)
    STATE.session_ttl = float(get(STATE.cfg, "server.session_ttl_s", STATE.session_ttl))
    log.setLevel(str(get(STATE.cfg, "output.log_level", "INFO")).upper())
    log.info("tracker config: %s", STATE.tracker_cfg)

# ---------- Routes ----------
@app.get("/health")
def health():
    return {"ok": True, "sessions": len(STATE.sessions), "speed_limit": STATE.tracker_cfg.speed_limit}

@app.post("/sessions/{sid}/frames")
def track_frame(sid: str, payload: Dict[str, Any]):
    dets = payload.get("detections")
    if not isinstance(dets, list) or not all(isinstance(d, dict) for d in dets):
        raise HTTPException(status_code=422, detail="detections must be a list of objects")
    for i, d in enumerate(dets):
        if d.get("box") is not None and not is_box(d["box"]):
            raise HTTPException(status_code=422, detail=f"detections[{i}].box must be 4 numbers")
    try:
        ts = int(payload.get("timestamp", time.time() * 1000))
    except (TypeError, ValueError):
        raise HTTPException(status_code=422, detail="timestamp must be an integer")

    s = STATE.session(sid)
    with s.lock:
        tracked = s.tracker.update(dets, ts)
        s.frames += 1
        s.last_seen = time.time()
        active = s.tracker.active_track_count()
    return {
        "timestamp": ts,
        "detections": tracked,
        "violations": collect_violations(tracked, s.tracker.cfg.speed_limit),
        "active_tracks": active,
    }

@app.post("/sessions/{sid}/reset")
def reset_session(sid: str):
    s = STATE.session(sid)
    with s.lock:
        s.tracker.reset()
        s.frames = 0
    return {"ok": True, "active_tracks": 0}

@app.get("/sessions/{sid}")
def session_info(sid: str):
    s = STATE.session(sid, create=False)
    if s is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    with s.lock:
        return {"id": sid, "frames": s.frames, "active_tracks": s.tracker.active_track_count(),
                "last_seen": s.last_seen}

@app.delete("/sessions/{sid}")
def close_session(sid: str):
    with STATE._lock:
        s = STATE.sessions.pop(sid, None)
    if s is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    log.info("session %s closed after %d frame(s)", sid, s.frames)
    return {"ok": True}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
