"""
Places Client
=============
Thin wrappers around the third-party place lookups used by the app:
  - Mapbox geocoding for the search box
  - Google Places (New) for the place details card

Both raise ``PlacesAPIError`` on failure; the routers translate that into
an HTTP error for the caller.
"""
import logging
from typing import Dict, List, Optional
from urllib.parse import quote

import requests

from ..config import settings

logger = logging.getLogger(__name__)

MAPBOX_GEOCODING_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/{query}.json"
GOOGLE_PLACE_DETAILS_URL = "https://places.googleapis.com/v1/places/{place_id}"

DETAIL_FIELDS = [
    "id",
    "displayName",
    "formattedAddress",
    "location",
    "types",
    "rating",
    "userRatingCount",
    "nationalPhoneNumber",
    "websiteUri",
    "regularOpeningHours",
    "priceLevel",
    "photos",
    "reviews",
    "editorialSummary",
]


class PlacesAPIError(Exception):
    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


def google_maps_url(place: Dict) -> str:
    """Link that opens a place in Google Maps, by Places id when we have one."""
    if place.get("place_id"):
        return f"https://www.google.com/maps/place/?q=place_id:{place['place_id']}"
    return f"https://www.google.com/maps/search/?api=1&query={place['lat']},{place['lng']}"


class PlacesClient:
    """
    Search and details lookups.

    search()   – free-text search via Mapbox, worldwide (no proximity bias)
    details()  – normalised Google Places (New) details for one place id
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    # ── Public interface ──────────────────────────────────────────────────────

    def search(self, query: str, limit: int = 10) -> List[Dict]:
        """
        Search points of interest, addresses and places.

        Returns a list of ``{id, name, address, lat, lng, category}``.
        """
        query = (query or "").strip()
        if not query:
            return []
        if not settings.mapbox_token:
            raise PlacesAPIError("Mapbox token not configured. Set MAPBOX_TOKEN.", 500)

        url = MAPBOX_GEOCODING_URL.format(query=quote(query, safe=""))
        params = {
            "types":        "poi,address,place",
            "access_token": settings.mapbox_token,
            "limit":        limit,
        }
        try:
            resp = requests.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Geocoding API error for %r: %s", query, exc)
            raise PlacesAPIError("Failed to search places") from exc

        return [self._from_mapbox(f) for f in data.get("features") or []]

    def details(self, place_id: str) -> Dict:
        """Fetch and normalise details for a Google Places id."""
        if not settings.google_places_api_key:
            logger.error("GOOGLE_PLACES_API_KEY is not set")
            raise PlacesAPIError(
                "API key not configured. Please set GOOGLE_PLACES_API_KEY environment variable.",
                500,
            )

        headers = {
            "Content-Type":     "application/json",
            "X-Goog-Api-Key":   settings.google_places_api_key,
            "X-Goog-FieldMask": ",".join(DETAIL_FIELDS),
        }
        try:
            resp = requests.get(
                GOOGLE_PLACE_DETAILS_URL.format(place_id=quote(place_id, safe="")),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Google Places API error for %s: %s", place_id, exc)
            raise PlacesAPIError("Failed to fetch place details", 500) from exc

        if not resp.ok:
            logger.error("Google Places API error: %s %s", resp.status_code, resp.text[:200])
            raise PlacesAPIError("Failed to fetch place details", resp.status_code)

        return self._from_google(resp.json())

    # ── Internal helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _from_mapbox(feature: Dict) -> Dict:
        lng, lat = feature["center"][:2]
        return {
            "id":       str(feature.get("id", "")),
            "name":     feature.get("text") or feature.get("place_name", ""),
            "address":  feature.get("place_name"),
            "lat":      lat,
            "lng":      lng,
            "category": (feature.get("properties") or {}).get("category") or "other",
        }

    @staticmethod
    def _from_google(data: Dict) -> Dict:
        location: Optional[Dict] = None
        if data.get("location"):
            location = {
                "latitude":  data["location"].get("latitude"),
                "longitude": data["location"].get("longitude"),
            }

        hours = data.get("regularOpeningHours")
        types = data.get("types") or []

        return {
            "id":               data.get("id"),
            "name":             (data.get("displayName") or {}).get("text") or "Unknown Place",
            "formattedAddress": data.get("formattedAddress") or "Address not available",
            "location":         location,
            "types":            types,
            "category":         types[0] if types else "other",
            "rating":           data.get("rating"),
            "userRatingCount":  data.get("userRatingCount"),
            "phoneNumber":      data.get("nationalPhoneNumber"),
            "website":          data.get("websiteUri"),
            "openingHours": {
                "weekdayDescriptions": hours.get("weekdayDescriptions") or [],
                "openNow":             hours.get("openNow"),
            } if hours else None,
            "priceLevel": data.get("priceLevel"),
            "photos": [
                {
                    "name":               photo.get("name"),
                    "widthPx":            photo.get("widthPx"),
                    "heightPx":           photo.get("heightPx"),
                    "authorAttributions": photo.get("authorAttributions") or [],
                }
                for photo in (data.get("photos") or [])[:5]
            ],
            "reviews": [
                {
                    "rating":     review.get("rating"),
                    "text":       (review.get("text") or {}).get("text", ""),
                    "time":       review.get("publishTime"),
                    "authorName": ((review.get("authorAttributions") or [{}])[0]
                                   .get("displayName") or "Anonymous"),
                }
                for review in (data.get("reviews") or [])[:5]
            ],
            "editorialSummary": (data.get("editorialSummary") or {}).get("text"),
        }
