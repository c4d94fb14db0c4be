"""Mapbox Static Images URL 생성"""

import logging

from app.config import settings
from app.models import Trip

logger = logging.getLogger(__name__)

STATIC_IMAGE_BASE_PATH = "/styles/v1"


def generate_static_image_url(
    latitude: float,
    longitude: float,
    zoom: float,
    width: int = 800,
    height: int = 400,
) -> str | None:
    """토큰이 없으면 None"""
    if not settings.mapbox_access_token:
        logger.warning("Mapbox 토큰 없이 Static Image URL 생성 요청")
        return None

    if not -90 <= latitude <= 90:
        raise ValueError("Latitude must be between -90 and 90")
    if not -180 <= longitude <= 180:
        raise ValueError("Longitude must be between -180 and 180")
    if not 0 <= zoom <= 22:
        raise ValueError("Zoom must be between 0 and 22")
    if not (1 <= width <= 1280 and 1 <= height <= 1280):
        raise ValueError("Width and height must be between 1 and 1280")

    # 좌표 순서는 경도,위도 / bearing, pitch는 0
    return (
        f"{settings.mapbox_api_url}{STATIC_IMAGE_BASE_PATH}/{settings.mapbox_static_style}/static/"
        f"{longitude},{latitude},{zoom},0,0/{width}x{height}"
        f"?access_token={settings.mapbox_access_token}"
    )


def refresh_viewport_image(trip: Trip) -> None:
    """뷰포트가 모두 지정되면 이미지 URL 재생성, 하나라도 비면 제거"""
    if trip.has_viewport:
        trip.viewport_static_image_url = generate_static_image_url(
            trip.viewport_latitude, trip.viewport_longitude, trip.viewport_zoom
        )
    else:
        trip.viewport_static_image_url = None
