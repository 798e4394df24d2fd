import itertools
import logging
from typing import List, Optional, Sequence

from greenwave.coordination.corridors import aggregate_stats, detect_corridors
from greenwave.coordination.timing import calculate_timing_offsets, check_corridor
from greenwave.domain.models import (
    Corridor, CorridorAnalysis, CorridorPreset, CorridorSummary, CoordinatorStats, TrafficSignal
)
from greenwave.domain.state import CoordinationState
from greenwave.domain import config
from greenwave.infrastructure.registry import InfrastructureRegistry

logger = logging.getLogger(__name__)

def get_preset(name: str) -> CorridorPreset:
    return CorridorPreset(**config.PRESET_CORRIDORS[name])

class SignalCoordinator:
    """Green-wave coordination over corridors of traffic signals.

    Analysis is side-effect free. ``apply_coordination`` is the only way a
    signal becomes coordinated and ``reset`` the only way back; both keep the
    stored corridors and the signal index in one ``CoordinationState``.
    """

    def __init__(self, registry: Optional[InfrastructureRegistry] = None):
        self.registry = registry
        self.state = CoordinationState()
        self._corridor_ids = itertools.count()

    def _next_corridor_id(self) -> str:
        return f"corridor-{next(self._corridor_ids)}"

    def analyze_corridors(
        self,
        signals: Sequence[TrafficSignal],
        max_spacing: float = config.DEFAULT_MAX_SPACING,
        bearing_variance: float = config.DEFAULT_BEARING_VARIANCE,
        target_speed: float = config.DEFAULT_TARGET_SPEED,
    ) -> CorridorAnalysis:
        logger.info("Analyzing %d signals for corridor detection", len(signals))

        corridors = detect_corridors(signals, max_spacing, bearing_variance, target_speed, self._next_corridor_id)
        coordinated = {signal_id for c in corridors for signal_id in c.signals}

        uncoordinated: List[str] = []
        seen = set(coordinated)
        for s in signals:
            if s.id not in seen:
                seen.add(s.id)
                uncoordinated.append(s.id)

        stats = aggregate_stats(corridors, len(coordinated))
        logger.info(
            "Found %d corridors (%d signals coordinated, %d uncoordinated)",
            stats.totalCorridors, stats.totalSignalsCoordinated, len(uncoordinated),
        )
        return CorridorAnalysis(corridors=corridors, uncoordinatedSignals=uncoordinated, stats=stats)

    def analyze_with_preset(self, signals: Sequence[TrafficSignal], preset_name: str) -> CorridorAnalysis:
        preset = get_preset(preset_name)
        return self.analyze_corridors(signals, preset.maxSpacing, preset.bearingVariance, preset.targetSpeed)

    def calculate_timing_offsets(self, corridor: Corridor, target_speed: float) -> List[float]:
        return calculate_timing_offsets(corridor, target_speed)

    def apply_coordination(self, registry: InfrastructureRegistry, corridors: Sequence[Corridor]):
        logger.info("Applying coordination to %d corridors", len(corridors))
        self.registry = registry

        for corridor in corridors:
            corridor.offsets = calculate_timing_offsets(corridor, corridor.targetSpeed)
            check_corridor(corridor)

            applied = registry.coordinate_signals(corridor.signals, corridor.offsets)
            released = self.state.store(corridor)
            if released:
                # Overlapping corridors are replaced whole
                registry.clear_coordination(released)
                logger.info("%s replaced a stored corridor, %d signals released", corridor.id, len(released))

            if len(applied) < len(corridor.signals):
                logger.debug(
                    "%s: %d of %d signals missing from registry",
                    corridor.id, len(corridor.signals) - len(applied), len(corridor.signals),
                )
            logger.info(
                "Applied coordination to %s: offsets = [%s]s",
                corridor.id, ", ".join(f"{o:.1f}" for o in corridor.offsets),
            )

    def update_corridor_speed(self, corridor_id: str, target_speed: float) -> Optional[Corridor]:
        corridor = self.state.get(corridor_id)
        if corridor is None:
            return None

        offsets = calculate_timing_offsets(corridor, target_speed)
        corridor.targetSpeed = target_speed
        corridor.offsets = offsets
        check_corridor(corridor)

        if self.registry is not None:
            self.registry.coordinate_signals(corridor.signals, corridor.offsets)
        return corridor

    def get_corridors(self) -> List[Corridor]:
        return self.state.corridors()

    def get_corridor(self, corridor_id: str) -> Optional[Corridor]:
        return self.state.get(corridor_id)

    def get_corridor_for_signal(self, signal_id: str) -> Optional[Corridor]:
        corridor_id = self.state.corridor_id_for(signal_id)
        return self.state.get(corridor_id) if corridor_id else None

    def is_signal_coordinated(self, signal_id: str) -> bool:
        return self.state.contains_signal(signal_id)

    def get_stats(self) -> CoordinatorStats:
        corridors = self.state.corridors()
        summary = aggregate_stats(corridors, self.state.signal_count())
        return CoordinatorStats(
            **summary.model_dump(),
            corridors=[
                CorridorSummary(id=c.id, signalCount=len(c.signals), length=c.length, targetSpeed=c.targetSpeed)
                for c in corridors
            ],
        )

    def reset(self):
        released = self.state.clear()
        if self.registry is not None:
            self.registry.clear_coordination(released)
        logger.info("Coordination reset (%d signals released)", len(released))

def create_signal_coordinator(registry: InfrastructureRegistry, auto_analyze: bool = True) -> SignalCoordinator:
    coordinator = SignalCoordinator(registry)
    if auto_analyze:
        analysis = coordinator.analyze_corridors(registry.get_signals())
        coordinator.apply_coordination(registry, analysis.corridors)
    return coordinator
