# Coordination Configuration
import os

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Offline OSM extraction output served by the API
SIGNALS_DATA_PATH = os.getenv("SIGNALS_DATA_PATH", "map-data/traffic-signals.json")

# Infrastructure Loading
SIGNAL_FEATURE_TYPE = "traffic_signals"
INTERSECTION_MERGE_RADIUS = 50.0   # meters, points closer than this share an intersection

# Signal Timings (seconds)
GREEN_DURATION = 8.0
YELLOW_DURATION = 2.0
RED_DURATION = 8.0

# Corridor Detection
DEFAULT_MAX_SPACING = 500.0           # meters between consecutive signals
DEFAULT_BEARING_VARIANCE = 30.0       # degrees from the chain's average bearing
DEFAULT_TARGET_SPEED = 50.0           # km/h
MIN_SIGNAL_SEPARATION = 1.0           # meters, closer pairs have no usable bearing

# Named corridor presets for known roads
PRESET_CORRIDORS = {
    # Princess Street (major east-west corridor)
    "princess_street": {"targetSpeed": 50.0, "maxSpacing": 500.0, "bearingVariance": 30.0},
    # University Avenue (north-south corridor)
    "university_avenue": {"targetSpeed": 50.0, "maxSpacing": 400.0, "bearingVariance": 25.0},
    # Division Street (north-south corridor)
    "division_street": {"targetSpeed": 60.0, "maxSpacing": 600.0, "bearingVariance": 35.0},
    # Union Street (east-west corridor)
    "union_street": {"targetSpeed": 50.0, "maxSpacing": 500.0, "bearingVariance": 30.0},
}
