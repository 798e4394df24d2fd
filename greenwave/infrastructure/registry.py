import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from greenwave.domain.models import (
    Approach, GeoPoint, Intersection, OSMPoint, RegistryStats, SignalConfig, TrafficSignal
)
from greenwave.domain import config, geo

logger = logging.getLogger(__name__)

RawPoint = Union[OSMPoint, Mapping[str, Any]]

class InfrastructureRegistry:
    """Owns the signal roster built from OSM traffic-signal points.

    Every qualifying point controls two approaches, so it materializes one
    north-south and one east-west ``TrafficSignal`` at the same position.
    Those records never share a corridor: each approach is analyzed on its
    own path by the coordinator.
    """

    def __init__(self):
        self._signals: Dict[str, TrafficSignal] = {}
        self._intersections: Dict[str, Intersection] = {}

    def load_from_osm(self, points: Iterable[RawPoint], replace: bool = False) -> List[TrafficSignal]:
        if replace:
            self.reset()

        created: List[TrafficSignal] = []
        skipped = 0
        for raw in points:
            point = self._parse_point(raw)
            if point is None or point.featureType != config.SIGNAL_FEATURE_TYPE:
                skipped += 1
                continue

            position = GeoPoint(latitude=point.latitude, longitude=point.longitude)
            signal_ids = [f"signal-{point.sourceId}-{a.value.lower()}" for a in (Approach.NS, Approach.EW)]
            for signal_id in signal_ids:
                self._detach_signal(signal_id)

            intersection = self._find_or_create_intersection(point, position)
            for signal_id, approach in zip(signal_ids, (Approach.NS, Approach.EW)):
                signal = TrafficSignal(
                    id=signal_id,
                    position=position,
                    approach=approach,
                    intersectionId=intersection.id,
                    sourceId=point.sourceId,
                    config=SignalConfig(),
                )
                self._signals[signal.id] = signal
                if signal.id not in intersection.signals:
                    intersection.signals.append(signal.id)
                created.append(signal)

        logger.info(
            "Loaded %d traffic signals (%d intersections, %d points skipped)",
            len(created), len(self._intersections), skipped,
        )
        return created

    def _parse_point(self, raw: RawPoint) -> Optional[OSMPoint]:
        if isinstance(raw, OSMPoint):
            return raw
        try:
            return OSMPoint.model_validate(raw)
        except ValidationError as e:
            logger.debug("Skipping malformed point %r: %s", raw, e.error_count())
            return None

    def _detach_signal(self, signal_id: str):
        # A reloaded point may have moved, so its old intersection lets go of it
        previous = self._signals.pop(signal_id, None)
        if previous is None or previous.intersectionId is None:
            return
        intersection = self._intersections.get(previous.intersectionId)
        if intersection is None:
            return

        if signal_id in intersection.signals:
            intersection.signals.remove(signal_id)
        still_present = any(self._signals[s].sourceId == previous.sourceId for s in intersection.signals)
        if not still_present and previous.sourceId in intersection.sourceIds:
            intersection.sourceIds.remove(previous.sourceId)
        if not intersection.signals:
            del self._intersections[intersection.id]

    def _find_or_create_intersection(self, point: OSMPoint, position: GeoPoint) -> Intersection:
        for intersection in self._intersections.values():
            if geo.distance_m(intersection.position, position) < config.INTERSECTION_MERGE_RADIUS:
                if point.sourceId not in intersection.sourceIds:
                    intersection.sourceIds.append(point.sourceId)
                return intersection

        intersection = Intersection(
            id=f"intersection-{point.sourceId}",
            position=position,
            sourceIds=[point.sourceId],
        )
        self._intersections[intersection.id] = intersection
        return intersection

    def get_signals(self) -> List[TrafficSignal]:
        return list(self._signals.values())

    def get_signal(self, signal_id: str) -> Optional[TrafficSignal]:
        return self._signals.get(signal_id)

    def get_intersections(self) -> List[Intersection]:
        return list(self._intersections.values())

    def get_intersection(self, intersection_id: str) -> Optional[Intersection]:
        return self._intersections.get(intersection_id)

    def set_signal_config(self, signal_id: str, **changes: Any):
        signal = self._signals.get(signal_id)
        if signal:
            signal.config = signal.config.model_copy(update=changes)

    def set_intersection_timing(self, intersection_id: str, **changes: Any):
        intersection = self._intersections.get(intersection_id)
        if intersection:
            for signal_id in intersection.signals:
                self.set_signal_config(signal_id, **changes)

    def coordinate_signals(self, signal_ids: Sequence[str], offsets: Sequence[float]) -> List[str]:
        """Write coordination offsets; ids missing from the roster are skipped."""
        applied: List[str] = []
        for signal_id, offset in zip(signal_ids, offsets):
            signal = self._signals.get(signal_id)
            if signal is None:
                logger.debug("Signal %s not in registry, offset not applied", signal_id)
                continue
            signal.config.coordinationOffset = float(offset)
            applied.append(signal_id)
        return applied

    def clear_coordination(self, signal_ids: Iterable[str]):
        for signal_id in signal_ids:
            signal = self._signals.get(signal_id)
            if signal:
                signal.config.coordinationOffset = None

    def get_stats(self) -> RegistryStats:
        return RegistryStats(
            totalIntersections=len(self._intersections),
            totalSignals=len(self._signals),
            coordinatedSignals=sum(
                1 for s in self._signals.values() if s.config.coordinationOffset is not None
            ),
        )

    def reset(self):
        self._signals.clear()
        self._intersections.clear()

def load_points_file(path: Union[str, Path]) -> List[Dict[str, Any]]:
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of points")
    return data
