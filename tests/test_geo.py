"""
Trippee – Geo & Route Optimizer Tests
=====================================
Run with:  python3 -m pytest tests/ -v
"""
import sys
import os
import math
import random
from types import SimpleNamespace

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from trippee.services import geo
from trippee.services.route_optimizer import RouteOptimizer


TOKYO = {"id": "tokyo", "lat": 35.6762, "lng": 139.6503}
OSAKA = {"id": "osaka", "lat": 34.6937, "lng": 135.5023}

SHIBUYA_AREA = [
    {"id": "t1", "lat": 35.6595, "lng": 139.7005},
    {"id": "t2", "lat": 35.6620, "lng": 139.6980},
    {"id": "t3", "lat": 35.6580, "lng": 139.7030},
]
NAMBA_AREA = [
    {"id": "o1", "lat": 34.6665, "lng": 135.5010},
    {"id": "o2", "lat": 34.6690, "lng": 135.5030},
    {"id": "o3", "lat": 34.6650, "lng": 135.4990},
    {"id": "o4", "lat": 34.6700, "lng": 135.5050},
]


# ══════════════════════════════════════════════════════════════════════════════
# 1. Distances
# ══════════════════════════════════════════════════════════════════════════════

class TestDistances:

    def test_haversine_same_point_is_zero(self):
        assert geo.haversine_distance(35.0, 139.0, 35.0, 139.0) == 0.0

    def test_haversine_tokyo_osaka_approx_400km(self):
        d = geo.haversine_distance(TOKYO["lat"], TOKYO["lng"], OSAKA["lat"], OSAKA["lng"])
        assert 390 < d < 410

    def test_haversine_is_symmetric(self):
        a = geo.haversine_distance(TOKYO["lat"], TOKYO["lng"], OSAKA["lat"], OSAKA["lng"])
        b = geo.haversine_distance(OSAKA["lat"], OSAKA["lng"], TOKYO["lat"], TOKYO["lng"])
        assert a == pytest.approx(b)

    def test_haversine_antipodal_points(self):
        # rounding pushes the haversine term just past 1 here
        d = geo.haversine_distance(0.08, 0.0, -0.08, 180.0)
        assert d == pytest.approx(math.pi * geo.EARTH_RADIUS_KM)

    def test_route_through_antipodal_points(self):
        a = {"id": "a", "lat": 0.08, "lng": 0.0}
        b = {"id": "b", "lat": -0.08, "lng": 180.0}
        c = {"id": "c", "lat": 0.0, "lng": 1.0}
        route = geo.optimize_route([a, b, c])
        assert [p["id"] for p in route] == ["a", "c", "b"]
        assert geo.route_distance(route) > 0

    def test_distance_matrix_matches_scalar(self):
        import numpy as np
        pts = np.array([[TOKYO["lat"], TOKYO["lng"]], [OSAKA["lat"], OSAKA["lng"]]])
        m = geo._distance_matrix(pts, pts)
        assert m[0, 0] == pytest.approx(0.0, abs=1e-9)
        assert m[0, 1] == pytest.approx(
            geo.haversine_distance(TOKYO["lat"], TOKYO["lng"], OSAKA["lat"], OSAKA["lng"])
        )

    def test_centroid_of_empty_is_origin(self):
        assert geo.centroid([]) == (0.0, 0.0)

    def test_centroid_is_mean(self):
        c = geo.centroid([{"lat": 0, "lng": 0}, {"lat": 2, "lng": 4}])
        assert c == (1.0, 2.0)

    def test_within_radius_is_inclusive_and_ordered(self):
        pts = [OSAKA] + SHIBUYA_AREA
        hits = geo.places_within_radius(TOKYO, pts, 10)
        assert [p["id"] for p in hits] == ["t1", "t2", "t3"]
        assert geo.is_within_radius(TOKYO, TOKYO, 0)


# ══════════════════════════════════════════════════════════════════════════════
# 2. Clustering
# ══════════════════════════════════════════════════════════════════════════════

class TestClustering:

    def test_empty_input_returns_empty(self):
        assert geo.cluster_places([], 3) == []

    def test_non_positive_k_returns_empty(self):
        assert geo.cluster_places(SHIBUYA_AREA, 0) == []
        assert geo.cluster_places(SHIBUYA_AREA, -1) == []

    def test_fewer_points_than_days_gives_singletons_in_order(self):
        clusters = geo.cluster_places(SHIBUYA_AREA, 5)
        assert [[p["id"] for p in c] for c in clusters] == [["t1"], ["t2"], ["t3"]]

    def test_separates_distant_areas(self):
        pts = SHIBUYA_AREA + NAMBA_AREA
        clusters = geo.cluster_places(pts, 2, rng=random.Random(7))
        ids = [sorted(p["id"] for p in c) for c in clusters]
        assert ids == [["o1", "o2", "o3", "o4"], ["t1", "t2", "t3"]]

    def test_result_is_independent_of_seed_for_separated_areas(self):
        pts = SHIBUYA_AREA + NAMBA_AREA
        for seed in range(10):
            clusters = geo.cluster_places(pts, 2, rng=random.Random(seed))
            assert [len(c) for c in clusters] == [4, 3]

    def test_no_point_is_lost_or_duplicated(self):
        rng = random.Random(1)
        pts = [{"id": str(i), "lat": 35 + rng.random(), "lng": 139 + rng.random()} for i in range(40)]
        clusters = geo.cluster_places(pts, 4, rng=random.Random(3))
        flat = [p["id"] for c in clusters for p in c]
        assert sorted(flat) == sorted(p["id"] for p in pts)

    def test_at_most_k_clusters_sorted_by_size(self):
        rng = random.Random(2)
        pts = [{"id": str(i), "lat": 48 + rng.random(), "lng": 2 + rng.random()} for i in range(25)]
        clusters = geo.cluster_places(pts, 4, rng=random.Random(9))
        assert 1 <= len(clusters) <= 4
        sizes = [len(c) for c in clusters]
        assert sizes == sorted(sizes, reverse=True)
        assert all(sizes)

    def test_coincident_points_fill_every_cluster(self):
        pts = [{"id": str(i), "lat": 35.0, "lng": 139.0} for i in range(3)]
        clusters = geo.cluster_places(pts, 2, rng=random.Random(0))
        assert [len(c) for c in clusters] == [2, 1]

    def test_returns_the_same_objects(self):
        pts = SHIBUYA_AREA + NAMBA_AREA
        clusters = geo.cluster_places(pts, 2, rng=random.Random(0))
        assert all(any(p is q for q in pts) for c in clusters for p in c)

    def test_same_seed_is_deterministic(self):
        rng = random.Random(4)
        pts = [{"id": str(i), "lat": 40 + rng.random(), "lng": -74 + rng.random()} for i in range(30)]
        a = geo.cluster_places(pts, 3, rng=random.Random(11))
        b = geo.cluster_places(pts, 3, rng=random.Random(11))
        assert [[p["id"] for p in c] for c in a] == [[p["id"] for p in c] for c in b]

    def test_repair_moves_farthest_point_of_largest_cluster(self):
        points = [
            {"lat": 0.0, "lng": 0.0},
            {"lat": 0.0, "lng": 0.1},
            {"lat": 0.0, "lng": 1.0},
        ]
        clusters = [[0, 1, 2], []]
        centroids = [(0.0, 0.0), (0.0, 0.0)]
        geo._repair_empty_clusters(clusters, centroids, points)
        assert clusters == [[0, 1], [2]]
        assert centroids[1] == (0.0, 1.0)

    def test_repair_leaves_singletons_alone(self):
        points = [{"lat": 0.0, "lng": 0.0}]
        clusters = [[0], []]
        geo._repair_empty_clusters(clusters, [(0.0, 0.0), (0.0, 0.0)], points)
        assert clusters == [[0], []]


# ══════════════════════════════════════════════════════════════════════════════
# 2b. Seeding & assignment ties
# ══════════════════════════════════════════════════════════════════════════════

class FirstPick:
    """Random source whose first centroid is always ``index``."""

    def __init__(self, index):
        self.index = index

    def randrange(self, n):
        return self.index


def equator(*lngs):
    return [{"id": f"p{i}", "lat": 0.0, "lng": float(lng)} for i, lng in enumerate(lngs)]


def coords(points):
    import numpy as np
    return np.array([[p["lat"], p["lng"]] for p in points], dtype=float)


class TestSeeding:

    def test_second_centroid_is_farthest_point(self):
        pts = equator(0, 1, 5, 2)
        seeds = geo._seed_centroids(coords(pts), 2, FirstPick(0))
        assert seeds == [(0.0, 0.0), (0.0, 5.0)]

    def test_later_centroids_maximise_min_distance(self):
        pts = equator(0, 1, 5, 2)
        seeds = geo._seed_centroids(coords(pts), 3, FirstPick(0))
        # p1 is 1° from p0, p3 is 2° from p0 and 3° from p2
        assert seeds == [(0.0, 0.0), (0.0, 5.0), (0.0, 2.0)]

    def test_equal_distances_pick_lowest_index(self):
        pts = equator(0, 1, -1)
        seeds = geo._seed_centroids(coords(pts), 2, FirstPick(0))
        assert seeds == [(0.0, 0.0), (0.0, 1.0)]

    def test_first_centroid_comes_from_rng(self):
        pts = equator(0, 1, 5, 2)
        seeds = geo._seed_centroids(coords(pts), 1, FirstPick(3))
        assert seeds == [(0.0, 2.0)]

    def test_equidistant_point_joins_lowest_cluster(self):
        # seeds are p0 and p1; p2 sits exactly between them
        pts = equator(-1, 1, 0)
        clusters = geo.cluster_places(pts, 2, rng=FirstPick(0))
        assert [[p["id"] for p in c] for c in clusters] == [["p0", "p2"], ["p1"]]

    def test_converges_to_hand_computed_partition(self):
        # seeds p4 (5.4°) then p0 (0°, farthest); p2, p3, p4 stay together
        pts = equator(0, 1, 9, 10, 5.4)
        clusters = geo.cluster_places(pts, 2, rng=FirstPick(4))
        assert [[p["id"] for p in c] for c in clusters] == [["p2", "p3", "p4"], ["p0", "p1"]]

    def test_iteration_cap_still_partitions(self, monkeypatch):
        monkeypatch.setattr(geo, "MAX_ITERATIONS", 1)
        pts = equator(0, 1, 9, 10, 5.4)
        clusters = geo.cluster_places(pts, 2, rng=FirstPick(4))
        assert [[p["id"] for p in c] for c in clusters] == [["p2", "p3", "p4"], ["p0", "p1"]]


# ══════════════════════════════════════════════════════════════════════════════
# 3. Routing & estimates
# ══════════════════════════════════════════════════════════════════════════════

class TestRouting:

    def test_short_routes_unchanged(self):
        a, b = {"lat": 0, "lng": 5}, {"lat": 0, "lng": 0}
        assert geo.optimize_route([]) == []
        assert geo.optimize_route([a]) == [a]
        assert geo.optimize_route([a, b]) == [a, b]

    def test_nearest_neighbour_order_from_first(self):
        a = {"id": "a", "lat": 0.0, "lng": 0.0}
        b = {"id": "b", "lat": 0.0, "lng": 1.0}
        c = {"id": "c", "lat": 0.0, "lng": 2.0}
        d = {"id": "d", "lat": 0.0, "lng": 3.0}
        route = geo.optimize_route([a, d, b, c])
        assert [p["id"] for p in route] == ["a", "b", "c", "d"]

    def test_route_keeps_every_point(self):
        route = geo.optimize_route(NAMBA_AREA)
        assert sorted(p["id"] for p in route) == sorted(p["id"] for p in NAMBA_AREA)
        assert route[0] is NAMBA_AREA[0]

    def test_route_distance(self):
        a, b = {"lat": 0.0, "lng": 0.0}, {"lat": 0.0, "lng": 1.0}
        assert geo.route_distance([a]) == 0.0
        assert geo.route_distance([a, b, a]) == pytest.approx(
            2 * geo.haversine_distance(0, 0, 0, 1)
        )

    def test_travel_time_at_30kmh(self):
        assert geo.estimate_travel_time(0) == 0
        assert geo.estimate_travel_time(15) == 30
        assert geo.estimate_travel_time(0.25) == 1   # 0.5 min rounds up

    def test_visit_time_is_90_minutes_per_place(self):
        assert geo.estimate_visit_time(0) == 0
        assert geo.estimate_visit_time(3) == 270


# ══════════════════════════════════════════════════════════════════════════════
# 4. RouteOptimizer
# ══════════════════════════════════════════════════════════════════════════════

class TestRouteOptimizer:

    def setup_method(self):
        self.opt = RouteOptimizer(seed=42)

    def test_days_are_numbered_from_one(self):
        itinerary = self.opt.build_itinerary(SHIBUYA_AREA + NAMBA_AREA, 2)
        assert [d["day"] for d in itinerary] == [1, 2]

    def test_every_place_scheduled_once_with_sequential_order(self):
        itinerary = self.opt.build_itinerary(SHIBUYA_AREA + NAMBA_AREA, 3)
        ids = [s["id"] for d in itinerary for s in d["places"]]
        assert sorted(ids) == sorted(p["id"] for p in SHIBUYA_AREA + NAMBA_AREA)
        for day in itinerary:
            assert [s["order"] for s in day["places"]] == list(range(len(day["places"])))

    def test_more_days_than_places(self):
        itinerary = self.opt.build_itinerary([TOKYO, OSAKA], 5)
        assert len(itinerary) == 2
        assert all(len(d["places"]) == 1 for d in itinerary)

    def test_empty_places_give_empty_itinerary(self):
        assert self.opt.build_itinerary([], 3) == []

    def test_day_metrics(self):
        itinerary = self.opt.build_itinerary(NAMBA_AREA, 1)
        day = itinerary[0]
        assert day["estimated_visit_time_minutes"] == 4 * 90
        distance = geo.route_distance(geo.optimize_route(NAMBA_AREA))
        assert day["total_distance_km"] == round(distance, 3)
        assert day["estimated_travel_time_minutes"] == geo.estimate_travel_time(distance)

    def test_summarize_empty_day(self):
        assert RouteOptimizer.summarize_day([]) == {
            "total_distance_km": 0,
            "estimated_travel_time_minutes": 0,
            "estimated_visit_time_minutes": 0,
        }

    def test_apply_itinerary_assigns_and_clears(self):
        places = [SimpleNamespace(id=i, day_assigned=9, order_index=9) for i in ("a", "b", "c")]
        itinerary = [
            {"day": 1, "places": [{"id": "b", "order": 0}, {"id": "a", "order": 1}]},
        ]
        assigned = RouteOptimizer.apply_itinerary(places, itinerary)
        assert assigned == 2
        assert (places[0].day_assigned, places[0].order_index) == (1, 1)
        assert (places[1].day_assigned, places[1].order_index) == (1, 0)
        assert (places[2].day_assigned, places[2].order_index) == (None, None)
