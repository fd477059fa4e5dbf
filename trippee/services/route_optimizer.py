"""
Route Optimizer
===============
Turns a bag of trip places into a day-by-day itinerary: places are
clustered into geographic daily zones, then each zone is ordered with a
nearest-neighbour walk to minimise backtracking during the day.
"""
import logging
import random
from typing import Dict, Iterable, List, Optional

from . import geo

logger = logging.getLogger(__name__)


class RouteOptimizer:
    """
    Itinerary planner over ``geo``.

    build_itinerary()  – main entry; one entry per non-empty day
    apply_itinerary()  – write day/order assignments back onto stored places
    summarize_day()    – distance and time metrics for an ordered day
    """

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def build_itinerary(self, places: List[Dict], trip_days: int) -> List[Dict]:
        """
        Cluster ``places`` into at most ``trip_days`` days and order each day.

        Args:
            places:    dicts with ``id``, ``lat`` and ``lng``.
            trip_days: number of days available.

        Returns:
            List of day dicts – ``day`` (1-based), ``places`` as
            ``{"id", "order"}`` pairs plus distance/time estimates.
            Empty when nothing could be clustered.
        """
        clusters = geo.cluster_places(places, trip_days, rng=self._rng)
        if not clusters:
            return []

        itinerary = []
        for day_idx, cluster in enumerate(clusters):
            route = geo.optimize_route(cluster)
            itinerary.append({
                "day":    day_idx + 1,
                "places": [{"id": p["id"], "order": order} for order, p in enumerate(route)],
                **self.summarize_day(route),
            })

        logger.info(
            "Built itinerary: %d places over %d/%d days",
            len(places), len(itinerary), trip_days,
        )
        return itinerary

    @staticmethod
    def summarize_day(route: List[Dict]) -> Dict:
        distance = geo.route_distance(route)
        return {
            "total_distance_km":             round(distance, 3),
            "estimated_travel_time_minutes": geo.estimate_travel_time(distance),
            "estimated_visit_time_minutes":  geo.estimate_visit_time(len(route)),
        }

    @staticmethod
    def apply_itinerary(places: Iterable, itinerary: List[Dict]) -> int:
        """
        Set ``day_assigned``/``order_index`` on ORM places from an itinerary.
        Places the itinerary does not mention become unassigned.

        Returns the number of places that received a day.
        """
        slots = {
            stop["id"]: (day["day"], stop["order"])
            for day in itinerary
            for stop in day["places"]
        }
        assigned = 0
        for place in places:
            slot = slots.get(place.id)
            if slot:
                place.day_assigned, place.order_index = slot
                assigned += 1
            else:
                place.day_assigned = None
                place.order_index = None
        return assigned
