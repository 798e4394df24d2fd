from typing import Dict, List, Optional
from greenwave.domain.models import Corridor

class CoordinationState:
    """Stored corridors plus the signal -> corridor index derived from them.

    The corridor map is the source of truth. The index is only ever changed
    inside ``store`` and ``clear`` so the two cannot drift apart.
    """

    def __init__(self):
        self._corridors: Dict[str, Corridor] = {}
        self._signal_index: Dict[str, str] = {}

    def store(self, corridor: Corridor) -> List[str]:
        """Store a corridor, evicting any stored corridor it shares a signal with.

        Returns the signal ids that are no longer coordinated afterwards.
        """
        evicted = {corridor.id} if corridor.id in self._corridors else set()
        for signal_id in corridor.signals:
            owner = self._signal_index.get(signal_id)
            if owner is not None:
                evicted.add(owner)

        released: List[str] = []
        for corridor_id in evicted:
            for signal_id in self._corridors.pop(corridor_id).signals:
                if self._signal_index.get(signal_id) == corridor_id:
                    del self._signal_index[signal_id]
                    released.append(signal_id)

        self._corridors[corridor.id] = corridor
        for signal_id in corridor.signals:
            self._signal_index[signal_id] = corridor.id
        return [s for s in released if s not in self._signal_index]

    def clear(self) -> List[str]:
        released = list(self._signal_index.keys())
        self._corridors.clear()
        self._signal_index.clear()
        return released

    def get(self, corridor_id: str) -> Optional[Corridor]:
        return self._corridors.get(corridor_id)

    def corridors(self) -> List[Corridor]:
        return list(self._corridors.values())

    def corridor_id_for(self, signal_id: str) -> Optional[str]:
        return self._signal_index.get(signal_id)

    def contains_signal(self, signal_id: str) -> bool:
        return signal_id in self._signal_index

    def signal_count(self) -> int:
        return len(self._signal_index)

    def signal_ids(self) -> List[str]:
        return list(self._signal_index.keys())

    def check_consistency(self) -> bool:
        for signal_id, corridor_id in self._signal_index.items():
            corridor = self._corridors.get(corridor_id)
            if corridor is None or signal_id not in corridor.signals:
                return False
        for corridor_id, corridor in self._corridors.items():
            for signal_id in corridor.signals:
                if self._signal_index.get(signal_id) != corridor_id:
                    return False
        return True
