"""
Greedy corridor detection over a signal roster.

Signals are split by approach and each approach is chained on its own
candidate graph. A chain grows from its tail by the nearest unassigned
neighbor whose bearing stays within the variance of the chain's running
average bearing; once the tail stalls the head is grown the same way in the
reverse direction. Distance ties break on the smaller bearing deviation,
then on input order.
"""
import logging
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from greenwave.coordination.timing import calculate_timing_offsets
from greenwave.domain.graph import SignalGraph
from greenwave.domain.models import Corridor, CorridorStats, TrafficSignal
from greenwave.domain import geo

logger = logging.getLogger(__name__)

class Chain:
    def __init__(self, start: str):
        self.signals: List[str] = [start]
        self.bearings: List[float] = []
        self.lengths: List[float] = []

    def average_bearing(self) -> Optional[float]:
        if not self.bearings:
            return None
        return geo.circular_mean(self.bearings)

    def append(self, signal_id: str, bearing: float, length: float):
        self.signals.append(signal_id)
        self.bearings.append(bearing)
        self.lengths.append(length)

    def prepend(self, signal_id: str, bearing: float, length: float):
        self.signals.insert(0, signal_id)
        self.bearings.insert(0, bearing)
        self.lengths.insert(0, length)

def _nearest_aligned(
    graph: SignalGraph,
    end: str,
    chain: Chain,
    assigned: Set[str],
    reference: Optional[float],
    max_variance: float,
) -> Optional[Tuple[str, Dict]]:
    best_key = None
    best = None
    for candidate in graph.neighbors(end):
        if candidate in assigned or candidate in chain.signals:
            continue
        link = graph.get_edge_data(end, candidate)
        deviation = 0.0 if reference is None else geo.angle_difference(link["bearing"], reference)
        if deviation > max_variance:
            continue
        key = (link["length"], deviation, graph.order_of(candidate))
        if best_key is None or key < best_key:
            best_key = key
            best = (candidate, link)
    return best

def _grow_chain(graph: SignalGraph, start: str, assigned: Set[str], max_variance: float) -> Chain:
    chain = Chain(start)

    while True:
        found = _nearest_aligned(graph, chain.signals[-1], chain, assigned, chain.average_bearing(), max_variance)
        if found is None:
            break
        candidate, link = found
        chain.append(candidate, link["bearing"], link["length"])

    while True:
        average = chain.average_bearing()
        reference = None if average is None else geo.normalize_bearing(average + 180.0)
        head = chain.signals[0]
        found = _nearest_aligned(graph, head, chain, assigned, reference, max_variance)
        if found is None:
            break
        candidate, link = found
        # Stored in travel order: bearing and length from the new head to the old one
        forward = graph.get_edge_data(candidate, head)
        chain.prepend(candidate, forward["bearing"], forward["length"])

    return chain

def _partition_by_approach(signals: Sequence[TrafficSignal]) -> List[List[TrafficSignal]]:
    partitions: Dict[str, List[TrafficSignal]] = {}
    seen: Set[str] = set()
    for signal in signals:
        if signal.id in seen:
            continue
        seen.add(signal.id)
        partitions.setdefault(signal.approach.value, []).append(signal)
    return list(partitions.values())

def detect_corridors(
    signals: Sequence[TrafficSignal],
    max_spacing: float,
    max_variance: float,
    target_speed: float,
    next_id: Callable[[], str],
) -> List[Corridor]:
    corridors: List[Corridor] = []
    for partition in _partition_by_approach(signals):
        graph = SignalGraph.build(partition, max_spacing)
        assigned: Set[str] = set()

        for signal in partition:
            if signal.id in assigned:
                continue
            chain = _grow_chain(graph, signal.id, assigned, max_variance)
            if len(chain.signals) < 2:
                continue

            assigned.update(chain.signals)
            corridor = Corridor(
                id=next_id(),
                signals=chain.signals,
                direction=geo.circular_mean(chain.bearings),
                length=sum(chain.lengths),
                targetSpeed=target_speed,
                segmentLengths=chain.lengths,
            )
            corridor.offsets = calculate_timing_offsets(corridor, target_speed)
            corridors.append(corridor)
            logger.debug(
                "Corridor %s: %d signals, %.0fm, bearing %.0f",
                corridor.id, len(corridor.signals), corridor.length, corridor.direction,
            )
    return corridors

def aggregate_stats(corridors: Sequence[Corridor], signals_coordinated: int) -> CorridorStats:
    if not corridors:
        return CorridorStats(totalSignalsCoordinated=signals_coordinated)
    count = len(corridors)
    return CorridorStats(
        totalCorridors=count,
        totalSignalsCoordinated=signals_coordinated,
        averageCorridorLength=sum(c.length for c in corridors) / count,
        averageSignalsPerCorridor=sum(len(c.signals) for c in corridors) / count,
    )
