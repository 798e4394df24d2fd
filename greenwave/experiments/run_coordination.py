import json
import logging
import time
from typing import Any, Dict, Optional

from greenwave.coordination.coordinator import SignalCoordinator
from greenwave.infrastructure.registry import InfrastructureRegistry, load_points_file
from greenwave.logging_setup import setup_logging

logger = logging.getLogger(__name__)

def run_coordination(input_path: str, output_path: str, preset: Optional[str] = None) -> Dict[str, Any]:
    registry = InfrastructureRegistry()
    registry.load_from_osm(load_points_file(input_path))

    coordinator = SignalCoordinator(registry)

    start_time = time.time()
    signals = registry.get_signals()
    if preset:
        analysis = coordinator.analyze_with_preset(signals, preset)
    else:
        analysis = coordinator.analyze_corridors(signals)
    coordinator.apply_coordination(registry, analysis.corridors)
    end_time = time.time()
    logger.info("Coordination finished in %.4fs", end_time - start_time)

    report = {
        "stats": coordinator.get_stats().model_dump(),
        "registry": registry.get_stats().model_dump(),
        "corridors": [c.model_dump() for c in coordinator.get_corridors()],
        "uncoordinatedSignals": analysis.uncoordinatedSignals,
    }

    with open(output_path, 'w') as f:
        json.dump(report, f, indent=2)
    return report

if __name__ == "__main__":
    import sys
    setup_logging()
    if len(sys.argv) > 2:
        run_coordination(sys.argv[1], sys.argv[2], sys.argv[3] if len(sys.argv) > 3 else None)
    else:
        print("Usage: python -m greenwave.experiments.run_coordination <points.json> <report.json> [preset]")
