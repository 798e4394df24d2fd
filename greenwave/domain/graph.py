import networkx as nx
from typing import Dict, Any, List, Sequence

from greenwave.domain.models import TrafficSignal
from greenwave.domain import config, geo

class SignalGraph:
    """Directed candidate links between signals close enough to be chained.

    Every edge carries the great-circle ``length`` and the ``bearing`` from
    its source to its target, so chaining never recomputes geometry.
    """

    def __init__(self):
        self.graph = nx.DiGraph()

    def add_signal(self, signal: TrafficSignal, order: int):
        self.graph.add_node(signal.id, pos=signal.position, intersection=signal.intersectionId, order=order)

    def add_link(self, u: str, v: str, length: float, bearing: float):
        self.graph.add_edge(u, v, length=length, bearing=bearing)

    def get_edge_data(self, u: str, v: str) -> Dict[str, Any]:
        return self.graph.get_edge_data(u, v)

    def neighbors(self, u: str) -> List[str]:
        return list(self.graph.successors(u))

    def order_of(self, u: str) -> int:
        return self.graph.nodes[u]["order"]

    @classmethod
    def build(cls, signals: Sequence[TrafficSignal], max_spacing: float) -> "SignalGraph":
        network = cls()
        for order, signal in enumerate(signals):
            network.add_signal(signal, order)

        for i, a in enumerate(signals):
            for b in signals[i + 1:]:
                if a.intersectionId is not None and a.intersectionId == b.intersectionId:
                    continue
                length = geo.distance_m(a.position, b.position)
                if length < config.MIN_SIGNAL_SEPARATION or length > max_spacing:
                    continue
                network.add_link(a.id, b.id, length, geo.bearing_deg(a.position, b.position))
                network.add_link(b.id, a.id, length, geo.bearing_deg(b.position, a.position))
        return network
