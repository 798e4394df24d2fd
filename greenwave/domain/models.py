from enum import Enum
from typing import List, Optional, Union
from pydantic import AliasChoices, BaseModel, Field, field_validator

from greenwave.domain import config

class Approach(str, Enum):
    NS = "NS"
    EW = "EW"

class GeoPoint(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

class OSMPoint(BaseModel):
    """Raw geocoded point from the offline map-data extraction.

    Accepts both the canonical keys and the extraction's short keys
    (``lat``, ``lon``, ``type``, ``id``).
    """
    latitude: float = Field(ge=-90.0, le=90.0, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(ge=-180.0, le=180.0, validation_alias=AliasChoices("longitude", "lon"))
    featureType: str = Field(validation_alias=AliasChoices("featureType", "type"))
    sourceId: str = Field(validation_alias=AliasChoices("sourceId", "id"))

    @field_validator("sourceId", mode="before")
    @classmethod
    def _stringify_source_id(cls, value: Union[int, str]) -> str:
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise ValueError("sourceId must be an int or str")
        return str(value)

class SignalConfig(BaseModel):
    greenDuration: float = config.GREEN_DURATION
    yellowDuration: float = config.YELLOW_DURATION
    redDuration: float = config.RED_DURATION
    coordinationOffset: Optional[float] = None  # seconds after the corridor's first signal

class TrafficSignal(BaseModel):
    id: str  # e.g., "signal-1042-ns"
    position: GeoPoint
    approach: Approach = Approach.NS
    intersectionId: Optional[str] = None
    sourceId: Optional[str] = None
    config: SignalConfig = Field(default_factory=SignalConfig)

class Intersection(BaseModel):
    id: str  # e.g., "intersection-1042"
    position: GeoPoint
    signals: List[str] = []
    sourceIds: List[str] = []

class Corridor(BaseModel):
    id: str  # e.g., "corridor-0"
    signals: List[str]  # ordered along the direction of travel
    direction: float  # average bearing, degrees
    length: float  # meters
    targetSpeed: float = config.DEFAULT_TARGET_SPEED  # km/h
    offsets: List[float] = []  # seconds, parallel to signals
    segmentLengths: List[float] = []  # meters between consecutive signals

class CorridorStats(BaseModel):
    totalCorridors: int = 0
    totalSignalsCoordinated: int = 0
    averageCorridorLength: float = 0.0
    averageSignalsPerCorridor: float = 0.0

class CorridorAnalysis(BaseModel):
    corridors: List[Corridor]
    uncoordinatedSignals: List[str]
    stats: CorridorStats

class CorridorPreset(BaseModel):
    targetSpeed: float = Field(gt=0)
    maxSpacing: float = Field(gt=0)
    bearingVariance: float = Field(ge=0)

# API/Response Models

class CorridorSummary(BaseModel):
    id: str
    signalCount: int
    length: float
    targetSpeed: float

class CoordinatorStats(CorridorStats):
    corridors: List[CorridorSummary] = []

class RegistryStats(BaseModel):
    totalIntersections: int
    totalSignals: int
    coordinatedSignals: int

class SpeedUpdate(BaseModel):
    targetSpeed: float = Field(gt=0)

class AnalysisRequest(BaseModel):
    preset: Optional[str] = None
    maxSpacing: float = Field(default=config.DEFAULT_MAX_SPACING, gt=0)
    bearingVariance: float = Field(default=config.DEFAULT_BEARING_VARIANCE, ge=0)
    targetSpeed: float = Field(default=config.DEFAULT_TARGET_SPEED, gt=0)

class LoadResult(BaseModel):
    signalsCreated: int
    totalSignals: int
