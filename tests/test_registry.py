import json
import os
import tempfile
import unittest
from greenwave.domain.models import Approach, OSMPoint
from greenwave.infrastructure.registry import InfrastructureRegistry, load_points_file

POINTS = [
    {"lat": 44.225, "lon": -76.500, "type": "traffic_signals", "id": 1},
    {"lat": 44.225, "lon": -76.495, "type": "traffic_signals", "id": 2},
    {"lat": 44.225, "lon": -76.490, "type": "traffic_signals", "id": 3},
]

class TestInfrastructureRegistry(unittest.TestCase):
    def setUp(self):
        self.registry = InfrastructureRegistry()

    def test_each_point_yields_two_directional_signals(self):
        created = self.registry.load_from_osm(POINTS)
        self.assertEqual(len(created), 2 * len(POINTS))
        self.assertEqual(len(self.registry.get_signals()), 6)

        ns = self.registry.get_signal("signal-1-ns")
        ew = self.registry.get_signal("signal-1-ew")
        self.assertEqual(ns.approach, Approach.NS)
        self.assertEqual(ew.approach, Approach.EW)
        self.assertEqual(ns.position, ew.position)
        self.assertEqual(ns.intersectionId, ew.intersectionId)
        self.assertIsNone(ns.config.coordinationOffset)

    def test_accepts_canonical_keys_and_models(self):
        self.registry.load_from_osm([
            {"latitude": 44.225, "longitude": -76.500, "featureType": "traffic_signals", "sourceId": "a"},
            OSMPoint(latitude=44.225, longitude=-76.495, featureType="traffic_signals", sourceId="b"),
        ])
        self.assertIsNotNone(self.registry.get_signal("signal-a-ns"))
        self.assertIsNotNone(self.registry.get_signal("signal-b-ew"))

    def test_skips_malformed_and_non_signal_points(self):
        created = self.registry.load_from_osm([
            {"lat": 44.225, "lon": -76.500, "type": "stop", "id": 10},
            {"lon": -76.500, "type": "traffic_signals", "id": 11},
            {"lat": 200.0, "lon": -76.500, "type": "traffic_signals", "id": 12},
            {"lat": "north", "lon": -76.500, "type": "traffic_signals", "id": 13},
            {"lat": 44.225, "lon": -76.500, "type": "traffic_signals", "id": None},
            None,
            "garbage",
            {"lat": 44.225, "lon": -76.480, "type": "traffic_signals", "id": 14},
        ])
        self.assertEqual([s.id for s in created], ["signal-14-ns", "signal-14-ew"])
        self.assertEqual(len(self.registry.get_signals()), 2)

    def test_nearby_points_share_an_intersection(self):
        self.registry.load_from_osm([
            {"lat": 44.2250, "lon": -76.5000, "type": "traffic_signals", "id": 1},
            {"lat": 44.2252, "lon": -76.5000, "type": "traffic_signals", "id": 2},  # ~22m north
            {"lat": 44.2250, "lon": -76.4900, "type": "traffic_signals", "id": 3},
        ])
        intersections = self.registry.get_intersections()
        self.assertEqual(len(intersections), 2)

        shared = self.registry.get_intersection("intersection-1")
        self.assertEqual(shared.sourceIds, ["1", "2"])
        self.assertEqual(len(shared.signals), 4)
        self.assertEqual(self.registry.get_signal("signal-2-ew").intersectionId, "intersection-1")
        self.assertIsNone(self.registry.get_intersection("intersection-2"))

    def test_append_and_replace(self):
        self.registry.load_from_osm(POINTS[:1])
        self.registry.load_from_osm(POINTS[1:2])
        self.assertEqual(len(self.registry.get_signals()), 4)

        self.registry.load_from_osm(POINTS[2:], replace=True)
        self.assertEqual([s.id for s in self.registry.get_signals()], ["signal-3-ns", "signal-3-ew"])
        self.assertEqual(len(self.registry.get_intersections()), 1)

    def test_moved_point_leaves_its_old_intersection(self):
        self.registry.load_from_osm([
            {"lat": 44.2250, "lon": -76.5000, "type": "traffic_signals", "id": 1},
            {"lat": 44.2252, "lon": -76.5000, "type": "traffic_signals", "id": 2},  # ~22m north
        ])
        self.registry.load_from_osm([{"lat": 44.2250, "lon": -76.4900, "type": "traffic_signals", "id": 2}])

        shared = self.registry.get_intersection("intersection-1")
        self.assertEqual(shared.sourceIds, ["1"])
        self.assertEqual(shared.signals, ["signal-1-ns", "signal-1-ew"])

        moved = self.registry.get_intersection("intersection-2")
        self.assertEqual(moved.signals, ["signal-2-ns", "signal-2-ew"])
        self.assertEqual(self.registry.get_signal("signal-2-ns").intersectionId, "intersection-2")
        self.assertEqual(len(self.registry.get_intersections()), 2)
        self.assertEqual(len(self.registry.get_signals()), 4)

    def test_reloading_a_point_in_place_is_idempotent(self):
        self.registry.load_from_osm(POINTS[:1])
        self.registry.load_from_osm(POINTS[:1])

        self.assertEqual(len(self.registry.get_signals()), 2)
        intersection = self.registry.get_intersection("intersection-1")
        self.assertEqual(intersection.sourceIds, ["1"])
        self.assertEqual(intersection.signals, ["signal-1-ns", "signal-1-ew"])

    def test_coordinate_signals_skips_unknown_ids(self):
        self.registry.load_from_osm(POINTS[:2])
        applied = self.registry.coordinate_signals(["signal-1-ew", "missing", "signal-2-ew"], [0, 12.5, 28.7])
        self.assertEqual(applied, ["signal-1-ew", "signal-2-ew"])
        self.assertEqual(self.registry.get_signal("signal-1-ew").config.coordinationOffset, 0.0)
        self.assertEqual(self.registry.get_signal("signal-2-ew").config.coordinationOffset, 28.7)
        self.assertIsNone(self.registry.get_signal("signal-1-ns").config.coordinationOffset)

        self.registry.clear_coordination(["signal-1-ew", "missing"])
        self.assertIsNone(self.registry.get_signal("signal-1-ew").config.coordinationOffset)

    def test_signal_and_intersection_timing(self):
        self.registry.load_from_osm(POINTS[:1])
        self.registry.set_signal_config("signal-1-ns", greenDuration=20.0)
        self.assertEqual(self.registry.get_signal("signal-1-ns").config.greenDuration, 20.0)
        self.assertEqual(self.registry.get_signal("signal-1-ew").config.greenDuration, 8.0)

        self.registry.set_intersection_timing("intersection-1", yellowDuration=3.0)
        for signal in self.registry.get_signals():
            self.assertEqual(signal.config.yellowDuration, 3.0)

        # Unknown ids are ignored
        self.registry.set_signal_config("missing", greenDuration=1.0)
        self.registry.set_intersection_timing("missing", greenDuration=1.0)

    def test_stats_and_reset(self):
        self.registry.load_from_osm(POINTS)
        self.registry.coordinate_signals(["signal-1-ns"], [0.0])
        stats = self.registry.get_stats()
        self.assertEqual(stats.totalIntersections, 3)
        self.assertEqual(stats.totalSignals, 6)
        self.assertEqual(stats.coordinatedSignals, 1)

        self.registry.reset()
        self.assertEqual(self.registry.get_signals(), [])
        self.assertEqual(self.registry.get_intersections(), [])

    def test_load_points_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "traffic-signals.json")
            with open(path, "w") as f:
                json.dump(POINTS, f)
            self.assertEqual(load_points_file(path), POINTS)

            bad_path = os.path.join(tmp, "bad.json")
            with open(bad_path, "w") as f:
                json.dump({"points": POINTS}, f)
            with self.assertRaises(ValueError):
                load_points_file(bad_path)

if __name__ == '__main__':
    unittest.main()
