import logging
import os
from fastapi import FastAPI, HTTPException
from typing import Any, List
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from greenwave.coordination.coordinator import SignalCoordinator
from greenwave.domain.models import (
    AnalysisRequest, Corridor, CorridorAnalysis, CoordinatorStats, LoadResult,
    SpeedUpdate, TrafficSignal
)
from greenwave.domain import config
from greenwave.infrastructure.registry import InfrastructureRegistry, load_points_file
from greenwave.logging_setup import setup_logging

logger = logging.getLogger(__name__)

# Initialize infrastructure and coordination
registry = InfrastructureRegistry()
coordinator = SignalCoordinator(registry)

def load_signals_data(path: str) -> int:
    if not os.path.exists(path):
        logger.warning("Signals data %s not found, starting with an empty roster", path)
        return 0
    coordinator.reset()
    created = registry.load_from_osm(load_points_file(path), replace=True)
    analysis = coordinator.analyze_corridors(registry.get_signals())
    coordinator.apply_coordination(registry, analysis.corridors)
    return len(created)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: load the extracted signals and coordinate them once
    setup_logging()
    load_signals_data(config.SIGNALS_DATA_PATH)
    yield

app = FastAPI(lifespan=lifespan)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/api/signals", response_model=List[TrafficSignal])
async def get_signals():
    """Returns every traffic signal with its coordination offset"""
    return registry.get_signals()

@app.post("/api/signals/load", response_model=LoadResult)
async def load_signals(points: List[Any], replace: bool = False):
    """Loads raw OSM traffic-signal points; malformed points are skipped.

    Reloading drops the current coordination plan, run the analysis again to re-coordinate.
    """
    coordinator.reset()
    created = registry.load_from_osm(points, replace=replace)
    return {"signalsCreated": len(created), "totalSignals": len(registry.get_signals())}

@app.get("/api/signals/{signal_id}", response_model=TrafficSignal)
async def get_signal(signal_id: str):
    """Returns a single traffic signal"""
    signal = registry.get_signal(signal_id)
    if not signal:
        raise HTTPException(status_code=404, detail="Signal not found")
    return signal

@app.get("/api/signals/{signal_id}/corridor", response_model=Corridor)
async def get_signal_corridor(signal_id: str):
    """Returns the corridor a signal is coordinated in"""
    corridor = coordinator.get_corridor_for_signal(signal_id)
    if not corridor:
        raise HTTPException(status_code=404, detail="Signal is not coordinated")
    return corridor

@app.get("/api/corridors", response_model=List[Corridor])
async def get_corridors():
    """Returns all stored corridors"""
    return coordinator.get_corridors()

@app.get("/api/corridors/stats", response_model=CoordinatorStats)
async def get_corridor_stats():
    """Returns aggregate statistics over the stored corridors"""
    return coordinator.get_stats()

@app.get("/api/corridors/{corridor_id}", response_model=Corridor)
async def get_corridor(corridor_id: str):
    """Returns a single corridor"""
    corridor = coordinator.get_corridor(corridor_id)
    if not corridor:
        raise HTTPException(status_code=404, detail="Corridor not found")
    return corridor

@app.post("/api/corridors/{corridor_id}/speed", response_model=Corridor)
async def update_corridor_speed(corridor_id: str, update: SpeedUpdate):
    """Changes a corridor's design speed and re-times its green wave"""
    corridor = coordinator.update_corridor_speed(corridor_id, update.targetSpeed)
    if not corridor:
        raise HTTPException(status_code=404, detail="Corridor not found")
    return corridor

@app.post("/api/coordination/analyze", response_model=CorridorAnalysis)
async def analyze_and_apply(request: AnalysisRequest):
    """Replaces the current plan: detects corridors over the roster and applies their offsets"""
    if request.preset and request.preset not in config.PRESET_CORRIDORS:
        raise HTTPException(status_code=404, detail="Preset not found")

    coordinator.reset()
    signals = registry.get_signals()
    if request.preset:
        analysis = coordinator.analyze_with_preset(signals, request.preset)
    else:
        analysis = coordinator.analyze_corridors(
            signals, request.maxSpacing, request.bearingVariance, request.targetSpeed
        )
    coordinator.apply_coordination(registry, analysis.corridors)
    return analysis

@app.post("/api/coordination/reset")
async def reset_coordination():
    """Clears all corridors and signal offsets"""
    coordinator.reset()
    return {"status": "Coordination Reset"}

@app.get("/")
def read_root():
    return {"status": "Green Wave Coordinator Running", "signals": len(registry.get_signals())}
