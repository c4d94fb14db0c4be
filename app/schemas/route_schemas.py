"""경로 스키마"""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ValidationInfo, field_validator

from app.models import Route, TransportMode


class RouteCreate(BaseModel):
    trip_id: int
    tour_id: int | None = None
    start_marker_id: str
    end_marker_id: str
    transport_mode: TransportMode

    @field_validator("end_marker_id")
    @classmethod
    def markers_must_differ(cls, v: str, info: ValidationInfo) -> str:
        if v == info.data.get("start_marker_id"):
            raise ValueError("The end marker must be different from the start marker")
        return v


class RouteMarker(BaseModel):
    id: str
    name: str
    lat: float
    lng: float


class RouteResponse(BaseModel):
    id: int
    trip_id: int
    tour_id: int | None = None
    start_marker: RouteMarker
    end_marker: RouteMarker
    transport_mode: TransportMode
    transport_mode_label: str
    distance: int
    distance_km: float
    duration: int
    duration_minutes: int
    geometry: list[list[float]]
    transit_details: dict[str, Any] | None = None
    alternatives: list[dict[str, Any]] | None = None
    warning: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_route(cls, route: Route) -> "RouteResponse":
        def marker(m) -> RouteMarker:
            return RouteMarker(id=m.id, name=m.name, lat=m.latitude, lng=m.longitude)

        return cls(
            id=route.id,
            trip_id=route.trip_id,
            tour_id=route.tour_id,
            start_marker=marker(route.start_marker),
            end_marker=marker(route.end_marker),
            transport_mode=route.transport_mode,
            transport_mode_label=route.transport_mode.label,
            distance=route.distance,
            distance_km=route.distance_km,
            duration=route.duration,
            duration_minutes=route.duration_minutes,
            geometry=route.geometry,
            transit_details=route.transit_details,
            alternatives=route.alternatives,
            warning=route.warning,
            created_at=route.created_at,
            updated_at=route.updated_at,
        )


class MapboxUsageResponse(BaseModel):
    period: str
    count: int
    limit: int
    remaining: int
