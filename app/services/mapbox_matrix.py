"""Mapbox Matrix API (도보 거리 행렬)"""

import logging
from collections.abc import Sequence

import httpx

from app.config import settings
from app.core.exceptions import RoutingProviderError
from app.models import Marker
from app.services.mapbox_limiter import MapboxRequestLimiter

logger = logging.getLogger(__name__)

MAX_LOCATIONS = 25


class MapboxMatrixService:
    def __init__(self, client: httpx.Client, limiter: MapboxRequestLimiter):
        self.client = client
        self.limiter = limiter

    def calculate_matrix(self, markers: Sequence[Marker]) -> dict[str, list[list[float | None]]]:
        """모든 마커 쌍의 도보 거리(m)와 시간(s)"""
        if len(markers) < 2:
            raise ValueError("At least 2 markers are required to calculate a matrix")
        if len(markers) > MAX_LOCATIONS:
            raise ValueError(
                f"Too many markers. Maximum is {MAX_LOCATIONS} markers for Mapbox Matrix API"
            )

        self.limiter.check_quota()

        if not settings.mapbox_access_token:
            raise RoutingProviderError(
                "Mapbox access token not configured. Please add MAPBOX_ACCESS_TOKEN to your .env file."
            )

        coordinates = ";".join(f"{m.longitude},{m.latitude}" for m in markers)
        url = f"{settings.mapbox_api_url}/directions-matrix/v1/mapbox/walking/{coordinates}"

        logger.info(f"Mapbox Matrix API 호출: marker_count={len(markers)}")

        try:
            response = self.client.get(
                url,
                params={
                    "access_token": settings.mapbox_access_token,
                    "sources": "all",
                    "destinations": "all",
                    "annotations": "duration,distance",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Mapbox Matrix 요청 실패: {e}")
            raise RoutingProviderError(f"Failed to calculate matrix via Mapbox: {e}") from e
        finally:
            self.limiter.increment_count()

        if response.is_error:
            logger.error(f"Mapbox Matrix 오류 응답: status={response.status_code}")
            raise RoutingProviderError(f"Failed to calculate matrix via Mapbox: {response.text}")

        data = response.json()
        if "durations" not in data or "distances" not in data:
            raise RoutingProviderError(
                "Invalid response from Mapbox Matrix API: missing durations or distances"
            )

        return {"durations": data["durations"], "distances": data["distances"]}
