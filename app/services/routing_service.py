"""
경로 계산 서비스

- 자동차/자전거/도보: Mapbox Directions API (geojson)
- 대중교통: Google Routes API v2 (encoded polyline)
"""

import logging
from typing import Any

import httpx

from app.config import settings
from app.core.exceptions import RouteNotFoundError, RoutingProviderError
from app.models import Marker, TransportMode
from app.services.mapbox_limiter import MapboxRequestLimiter

logger = logging.getLogger(__name__)

MAPBOX_PROFILES = {
    TransportMode.DRIVING_CAR: "driving-traffic",
    TransportMode.CYCLING_REGULAR: "cycling",
    TransportMode.FOOT_WALKING: "walking",
}

GOOGLE_FIELD_MASK = (
    "routes.distanceMeters,routes.duration,routes.polyline.encodedPolyline,"
    "routes.legs.steps,routes.legs.localizedValues"
)


def decode_polyline(encoded: str) -> list[list[float]]:
    """Google encoded polyline을 [lng, lat] 목록으로 변환"""
    coordinates: list[list[float]] = []
    index = lat = lng = 0
    length = len(encoded)

    while index < length:
        deltas = []
        for _ in range(2):
            shift = result = 0
            while True:
                b = ord(encoded[index]) - 63
                index += 1
                result |= (b & 0x1F) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if result & 1 else result >> 1)
        lat += deltas[0]
        lng += deltas[1]
        coordinates.append([lng / 1e5, lat / 1e5])

    return coordinates


def _parse_seconds(value: str | int | None) -> int:
    # Google은 "123s" 형식으로 반환
    if value is None:
        return 0
    return int(str(value).rstrip("s") or 0)


def check_route_realism(distance_m: int, duration_s: int, mode: TransportMode) -> str | None:
    """교통수단별로 비현실적인 거리/속도에 대한 경고 문구"""
    distance_km = round(distance_m / 1000, 2)
    duration_h = duration_s / 3600
    avg_speed = distance_km / duration_h if duration_h > 0 else 0

    warnings = []
    if mode == TransportMode.FOOT_WALKING:
        if distance_km > 50:
            warnings.append(
                f"This walking route is very long ({distance_km:g} km). "
                "Consider using bicycle or car instead."
            )
        elif distance_km > 30:
            warnings.append(
                f"This is a long walking route ({distance_km:g} km). "
                "Make sure you're prepared for a multi-hour walk."
            )
        if avg_speed > 8:
            warnings.append("The calculated duration seems unrealistic for walking routes.")
    elif mode == TransportMode.CYCLING_REGULAR:
        if distance_km > 200:
            warnings.append(
                f"This is a very long cycling route ({distance_km:g} km). "
                "Consider breaking it into multiple days."
            )
        elif distance_km > 100:
            warnings.append(
                f"This is a long cycling route ({distance_km:g} km). "
                "Plan for rest stops and sufficient time."
            )
        if avg_speed > 40:
            warnings.append("The calculated duration seems unrealistic for cycling.")
    elif mode == TransportMode.DRIVING_CAR:
        if avg_speed > 150:
            warnings.append("The calculated duration seems unrealistic for driving.")

    return " ".join(warnings) if warnings else None


class RoutingService:
    """두 마커 사이 경로 계산"""

    def __init__(self, client: httpx.Client, limiter: MapboxRequestLimiter):
        self.client = client
        self.limiter = limiter

    def calculate_route(
        self, start: Marker, end: Marker, mode: TransportMode = TransportMode.DRIVING_CAR
    ) -> dict[str, Any]:
        if mode == TransportMode.PUBLIC_TRANSPORT:
            return self._calculate_transit_route(start, end)
        return self._calculate_mapbox_route(start, end, mode)

    def _calculate_mapbox_route(self, start: Marker, end: Marker, mode: TransportMode) -> dict[str, Any]:
        self.limiter.check_quota()

        if not settings.mapbox_access_token:
            raise RoutingProviderError(
                "Mapbox access token not configured. Please add MAPBOX_ACCESS_TOKEN to your .env file."
            )

        coordinates = f"{start.longitude},{start.latitude};{end.longitude},{end.latitude}"
        url = f"{settings.mapbox_api_url}/directions/v5/mapbox/{MAPBOX_PROFILES[mode]}/{coordinates}"

        try:
            response = self.client.get(
                url,
                params={
                    "access_token": settings.mapbox_access_token,
                    "overview": "full",
                    "geometries": "geojson",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Mapbox Directions 요청 실패: {e}")
            raise RoutingProviderError(f"Failed to calculate route via Mapbox: {e}") from e
        finally:
            self.limiter.increment_count()

        if response.is_error:
            logger.error(f"Mapbox Directions 오류 응답: status={response.status_code}")
            raise RoutingProviderError(f"Failed to calculate route via Mapbox: {response.text}")

        routes = response.json().get("routes") or []
        if not routes:
            raise RouteNotFoundError("No route found between the markers")

        route = routes[0]
        distance = int(route["distance"])
        duration = int(route["duration"])

        return {
            "distance": distance,
            "duration": duration,
            "geometry": route["geometry"]["coordinates"],
            "transit_details": None,
            "alternatives": None,
            "warning": check_route_realism(distance, duration, mode),
        }

    def _calculate_transit_route(
        self,
        start: Marker,
        end: Marker,
        include_alternatives: bool = True,
    ) -> dict[str, Any]:
        if not settings.google_maps_api_key:
            raise RoutingProviderError(
                "Google Maps API key not configured. Please add GOOGLE_MAPS_API_KEY to your .env file."
            )

        body: dict[str, Any] = {
            "origin": {"location": {"latLng": {"latitude": start.latitude, "longitude": start.longitude}}},
            "destination": {"location": {"latLng": {"latitude": end.latitude, "longitude": end.longitude}}},
            "travelMode": "TRANSIT",
            "computeAlternativeRoutes": include_alternatives,
            "languageCode": "en-US",
            "units": "METRIC",
        }

        try:
            response = self.client.post(
                settings.google_routes_url,
                json=body,
                headers={
                    "Referer": settings.frontend_url,
                    "X-Goog-Api-Key": settings.google_maps_api_key,
                    "X-Goog-FieldMask": GOOGLE_FIELD_MASK,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Google Routes 요청 실패: {e}")
            raise RoutingProviderError(f"Failed to calculate transit route via Google Maps: {e}") from e

        if response.is_error:
            logger.error(f"Google Routes 오류 응답: status={response.status_code}")
            raise RoutingProviderError(
                f"Failed to calculate transit route via Google Maps: {response.text}"
            )

        routes = response.json().get("routes") or []
        if not routes:
            raise RouteNotFoundError("No public transport route found between the markers")

        primary = routes[0]
        transit_details = None
        alternatives = None

        legs = primary.get("legs") or []
        if legs:
            transit_details = self._extract_transit_details(legs[0])
            if include_alternatives and len(routes) > 1:
                alternatives = [self._summarize_alternative(r) for r in routes[1:]]

        return {
            "distance": int(primary.get("distanceMeters", 0)),
            "duration": _parse_seconds(primary.get("duration")),
            "geometry": decode_polyline(primary["polyline"]["encodedPolyline"]),
            "transit_details": transit_details,
            "alternatives": alternatives,
            "warning": None,
        }

    @staticmethod
    def _extract_transit_details(leg: dict[str, Any]) -> dict[str, Any]:
        steps = []
        for step in leg.get("steps", []):
            step_data: dict[str, Any] = {
                "travel_mode": step.get("travelMode", "UNKNOWN"),
                "distance": int(step.get("distanceMeters", 0)),
                "duration": _parse_seconds(step.get("staticDuration")),
            }
            transit = step.get("transitDetails")
            if transit:
                stops = transit.get("stopDetails", {})
                line = transit.get("transitLine", {})
                step_data["transit"] = {
                    "departure_stop": {
                        "name": stops.get("departureStop", {}).get("name"),
                        "location": stops.get("departureStop", {}).get("location"),
                    },
                    "arrival_stop": {
                        "name": stops.get("arrivalStop", {}).get("name"),
                        "location": stops.get("arrivalStop", {}).get("location"),
                    },
                    "line": {
                        "name": line.get("name"),
                        "short_name": line.get("nameShort"),
                        "color": line.get("color"),
                        "vehicle_type": line.get("vehicle", {}).get("name", {}).get("text"),
                    },
                    "departure_time": stops.get("departureTime"),
                    "arrival_time": stops.get("arrivalTime"),
                    "num_stops": transit.get("stopCount", 0),
                    "headsign": transit.get("headsign"),
                }
            steps.append(step_data)

        localized = leg.get("localizedValues", {})
        return {
            "steps": steps,
            "departure_time": localized.get("departure", {}).get("time", {}).get("text"),
            "arrival_time": localized.get("arrival", {}).get("time", {}).get("text"),
            "start_address": leg.get("startLocation", {}).get("address"),
            "end_address": leg.get("endLocation", {}).get("address"),
        }

    @staticmethod
    def _summarize_alternative(route: dict[str, Any]) -> dict[str, Any]:
        legs = route.get("legs") or [{}]
        transit_steps = [s for s in legs[0].get("steps", []) if s.get("travelMode") == "TRANSIT"]
        return {
            "distance": int(route.get("distanceMeters", 0)),
            "duration": _parse_seconds(route.get("duration")),
            "num_transfers": max(0, len(transit_steps) - 1),
        }
