from typing import List
from greenwave.domain.models import Corridor

class CoordinationInvariantError(RuntimeError):
    pass

def segment_lengths(corridor: Corridor) -> List[float]:
    """Per-segment distances read from the corridor's own geometry.

    Corridors built without segment lengths are treated as evenly spaced
    over ``corridor.length``.
    """
    segments = len(corridor.signals) - 1
    if segments <= 0:
        return []
    if len(corridor.segmentLengths) == segments:
        return list(corridor.segmentLengths)
    return [corridor.length / segments] * segments

def calculate_timing_offsets(corridor: Corridor, speed_kmh: float) -> List[float]:
    """Green-wave offsets in seconds: cumulative travel time from the first signal."""
    if len(corridor.signals) <= 1:
        return [0.0]
    if speed_kmh <= 0:
        raise ValueError(f"target speed must be positive, got {speed_kmh} km/h")

    speed_ms = speed_kmh / 3.6
    offsets = [0.0]
    cumulative = 0.0
    for distance in segment_lengths(corridor):
        cumulative += distance
        offsets.append(cumulative / speed_ms)
    return offsets

def check_corridor(corridor: Corridor):
    if len(corridor.signals) != len(corridor.offsets):
        raise CoordinationInvariantError(
            f"{corridor.id}: {len(corridor.signals)} signals but {len(corridor.offsets)} offsets"
        )
    if corridor.offsets and corridor.offsets[0] != 0:
        raise CoordinationInvariantError(f"{corridor.id}: first offset is {corridor.offsets[0]}, not 0")
