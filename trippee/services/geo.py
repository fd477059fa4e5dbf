"""
Geo
===
Great-circle distances, k-means day clustering and nearest-neighbour
route ordering for trip places.

Every function works on plain dicts carrying ``lat`` and ``lng``
(plus whatever else the caller attaches, typically ``id`` and ``name``);
points are returned as the same objects, never copies.
"""
import math
import random
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

EARTH_RADIUS_KM = 6371.0
MAX_ITERATIONS = 20
CONVERGENCE_KM = 1.0
AVERAGE_SPEED_KMH = 30.0
VISIT_MINUTES_PER_PLACE = 90


# ── Distances ─────────────────────────────────────────────────────────────────

def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two coordinates.

    Returns:
        Distance in kilometres.
    """
    φ1, φ2 = math.radians(lat1), math.radians(lat2)
    dφ = math.radians(lat2 - lat1)
    dλ = math.radians(lng2 - lng1)
    a = math.sin(dφ / 2) ** 2 + math.cos(φ1) * math.cos(φ2) * math.sin(dλ / 2) ** 2
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _distance_matrix(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Haversine distances (km) between every row of ``a`` and every row of ``b``."""
    lat1 = np.radians(a[:, 0])[:, None]
    lat2 = np.radians(b[:, 0])[None, :]
    dlat = lat2 - lat1
    dlng = np.radians(b[:, 1])[None, :] - np.radians(a[:, 1])[:, None]
    h = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlng / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def centroid(points: Sequence[Dict]) -> Tuple[float, float]:
    """Coordinate-wise mean of ``points``; ``(0.0, 0.0)`` when there are none."""
    if not points:
        return (0.0, 0.0)
    lat = sum(p["lat"] for p in points) / len(points)
    lng = sum(p["lng"] for p in points) / len(points)
    return (lat, lng)


def is_within_radius(a: Dict, b: Dict, radius_km: float) -> bool:
    return haversine_distance(a["lat"], a["lng"], b["lat"], b["lng"]) <= radius_km


def places_within_radius(center: Dict, points: Sequence[Dict], radius_km: float) -> List[Dict]:
    """All ``points`` within ``radius_km`` of ``center`` (inclusive), input order kept."""
    return [p for p in points if is_within_radius(center, p, radius_km)]


# ── Clustering ────────────────────────────────────────────────────────────────

def _seed_centroids(coords: np.ndarray, k: int, rng: random.Random) -> List[Tuple[float, float]]:
    """
    Farthest-point seeding: a random first centroid, then repeatedly the
    unused point whose nearest chosen centroid is farthest away.
    """
    n = len(coords)
    first = rng.randrange(n)
    chosen = [first]
    used = np.zeros(n, dtype=bool)
    used[first] = True

    # running minimum distance from each point to the chosen centroids
    min_dist = _distance_matrix(coords, coords[[first]])[:, 0]

    while len(chosen) < k:
        candidates = np.where(used, -np.inf, min_dist)
        best = int(np.argmax(candidates))
        chosen.append(best)
        used[best] = True
        min_dist = np.minimum(min_dist, _distance_matrix(coords, coords[[best]])[:, 0])

    return [(float(coords[i, 0]), float(coords[i, 1])) for i in chosen]


def _repair_empty_clusters(
    clusters: List[List[int]],
    centroids: List[Tuple[float, float]],
    points: Sequence[Dict],
) -> None:
    """
    Give every empty cluster the point of the current largest cluster that
    lies farthest from that cluster's centroid. Mutates in place.
    """
    for i, members in enumerate(clusters):
        if members:
            continue

        largest = max(range(len(clusters)), key=lambda j: len(clusters[j]))
        if len(clusters[largest]) <= 1:
            continue

        donor = clusters[largest]
        c_lat, c_lng = centroid([points[m] for m in donor])
        farthest = max(
            range(len(donor)),
            key=lambda j: haversine_distance(
                points[donor[j]]["lat"], points[donor[j]]["lng"], c_lat, c_lng,
            ),
        )
        moved = donor.pop(farthest)
        members.append(moved)
        centroids[i] = (points[moved]["lat"], points[moved]["lng"])


def cluster_places(
    points: Sequence[Dict],
    k: int,
    rng: Optional[random.Random] = None,
) -> List[List[Dict]]:
    """
    Partition ``points`` into at most ``k`` geographic groups.

    Lloyd's k-means over haversine distance with farthest-point seeding,
    at most ``MAX_ITERATIONS`` rounds, stopping once no centroid moves more
    than ``CONVERGENCE_KM``. Empty clusters are refilled from the largest one.

    Args:
        points: dicts with ``lat`` and ``lng``.
        k:      target number of groups (usually the number of trip days).
        rng:    random source for the first centroid.

    Returns:
        Non-empty clusters, largest first. With ``len(points) <= k`` each
        point is its own cluster, in input order.
    """
    if not points or k <= 0:
        return []

    if len(points) <= k:
        return [[p] for p in points]

    rng = rng or random.Random()
    coords = np.array([[p["lat"], p["lng"]] for p in points], dtype=float)
    centroids = _seed_centroids(coords, k, rng)

    clusters: List[List[int]] = [[] for _ in range(k)]
    for _ in range(MAX_ITERATIONS):
        dist = _distance_matrix(coords, np.array(centroids, dtype=float))
        nearest = np.argmin(dist, axis=1)

        clusters = [[] for _ in range(k)]
        for idx, c in enumerate(nearest):
            clusters[int(c)].append(idx)

        _repair_empty_clusters(clusters, centroids, points)

        moved = False
        for i, members in enumerate(clusters):
            if not members:
                continue
            new = centroid([points[m] for m in members])
            if haversine_distance(centroids[i][0], centroids[i][1], new[0], new[1]) > CONVERGENCE_KM:
                moved = True
            centroids[i] = new

        if not moved:
            break

    groups = [[points[m] for m in members] for members in clusters if members]
    return sorted(groups, key=len, reverse=True)


# ── Routing ───────────────────────────────────────────────────────────────────

def optimize_route(points: Sequence[Dict]) -> List[Dict]:
    """
    Order ``points`` with a greedy nearest-neighbour walk starting from the
    first one. No backtracking or 2-opt; up to two points are returned as-is.
    """
    if len(points) <= 2:
        return list(points)

    remaining = list(points)
    route = [remaining.pop(0)]

    while remaining:
        cur = route[-1]
        nearest = min(
            range(len(remaining)),
            key=lambda i: haversine_distance(
                cur["lat"], cur["lng"], remaining[i]["lat"], remaining[i]["lng"],
            ),
        )
        route.append(remaining.pop(nearest))

    return route


def route_distance(points: Sequence[Dict]) -> float:
    """Sum of the legs between consecutive points, in km."""
    return sum(
        haversine_distance(a["lat"], a["lng"], b["lat"], b["lng"])
        for a, b in zip(points, points[1:])
    )


def estimate_travel_time(distance_km: float) -> int:
    """Minutes needed to cover ``distance_km`` at a flat average speed."""
    minutes = distance_km / AVERAGE_SPEED_KMH * 60
    return int(math.floor(minutes + 0.5))


def estimate_visit_time(num_places: int) -> int:
    return num_places * VISIT_MINUTES_PER_PLACE
