"""
Delivery route ordering.

Active orders are geocoded by postcode through the Mapbox geocoding API and
visited nearest-to-depot first. Orders that cannot be geocoded go at the end.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple
from dataclasses import dataclass
from urllib.parse import quote
import logging
import math

import httpx

from magicsell.config import Settings, get_settings
from magicsell.schemas.order import Order, OrderStatus

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
ACTIVE_STATUSES = {OrderStatus.PENDING.value, OrderStatus.IN_PROCESS.value}


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


class Geocoder(Protocol):
    async def geocode(self, postcode: str) -> Optional[Coordinates]:
        ...


class MapboxGeocoder:
    """Postcode lookup against the Mapbox places endpoint."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.client = client or httpx.AsyncClient(timeout=settings.geocoding_timeout_seconds)

    async def geocode(self, postcode: str) -> Optional[Coordinates]:
        url = f"{self.settings.mapbox_geocoding_url}/{quote(postcode)}.json"
        params = {"access_token": self.settings.mapbox_token, "country": self.settings.geocoding_country}
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            features = response.json().get("features") or []
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Geocoding error for {postcode}: {e}")
            return None

        if not features:
            logger.warning(f"No geocoding results for {postcode}")
            return None
        lng, lat = features[0]["center"][:2]
        return Coordinates(lat=float(lat), lng=float(lng))

    async def aclose(self) -> None:
        await self.client.aclose()


class RouteOptimizer:
    def __init__(self, settings: Optional[Settings] = None, geocoder: Optional[Geocoder] = None):
        self.settings = settings or get_settings()
        self.geocoder = geocoder
        self.depot = Coordinates(lat=self.settings.depot_lat, lng=self.settings.depot_lng)

    def _response(self, route, start_postcode: str, message: str, total: float = 0.0) -> Dict[str, Any]:
        return {
            "route": route,
            "totalDistance": total,
            "startPoint": start_postcode,
            "message": message,
        }

    async def optimize(
        self,
        orders: Sequence[Order],
        start_postcode: Optional[str] = None,
    ) -> Dict[str, Any]:
        start_postcode = start_postcode or self.settings.depot_postcode
        active = [o for o in orders if o.status in ACTIVE_STATUSES]
        logger.info(f"Route optimization requested for {len(active)} active orders from {start_postcode}")

        if not active:
            return self._response([], start_postcode, "No active orders to optimize")

        active_records = [o.to_record() for o in active]
        if self.geocoder is None:
            return self._response(active_records, start_postcode, "Mapbox token required for full optimization")

        located: List[Tuple[Dict[str, Any], Coordinates]] = []
        unlocated: List[Dict[str, Any]] = []
        for order in active:
            postcode = order.customer_postcode
            if not postcode:
                logger.warning(f"Order {order.id} skipped, no postcode")
                continue
            coords = await self.geocoder.geocode(postcode)
            record = order.to_record()
            if coords is None:
                unlocated.append({**record, "coordinates": None})
            else:
                located.append(({**record, "coordinates": coords.to_dict()}, coords))

        if not located:
            return self._response(active_records, start_postcode, "No orders with valid coordinates found")

        located.sort(key=lambda item: haversine_km(self.depot, item[1]))

        route = []
        total = 0.0
        previous = self.depot
        for position, (record, coords) in enumerate(located, start=1):
            leg = haversine_km(previous, coords)
            total += leg
            route.append({
                **record,
                "distanceFromDepot": round(haversine_km(self.depot, coords), 2),
                "routeDistance": round(leg, 2),
                "routeOrder": position,
            })
            previous = coords
        route.extend(unlocated)

        logger.info(f"Route optimization completed: {len(route)} stops, {total:.2f} km")
        return self._response(
            route,
            start_postcode,
            f"Route optimized for {len(located)} orders",
            total=round(total, 2),
        )


def build_geocoder(settings: Settings) -> Optional[MapboxGeocoder]:
    if not settings.mapbox_token:
        return None
    return MapboxGeocoder(settings)
