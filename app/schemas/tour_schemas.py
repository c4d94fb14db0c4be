"""투어 스키마"""
from datetime import datetime

from pydantic import BaseModel, Field

from app.models import Tour


class TourCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    trip_id: int
    parent_tour_id: int | None = None


class TourUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class TourMarkerRequest(BaseModel):
    marker_id: str


class TourMarkerReorder(BaseModel):
    marker_ids: list[str]


class SubTourReorder(BaseModel):
    sub_tour_ids: list[int]


class TourMarker(BaseModel):
    id: str
    name: str
    type: str
    latitude: float
    longitude: float
    notes: str | None = None
    url: str | None = None
    is_unesco: bool
    trip_id: int
    position: int


class TourResponse(BaseModel):
    id: int
    name: str
    trip_id: int
    parent_tour_id: int | None = None
    position: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    markers: list[TourMarker] = []
    sub_tours: list["TourResponse"] = []

    @classmethod
    def from_tour(cls, tour: Tour) -> "TourResponse":
        """하위 투어와 마커 순서를 포함해 변환"""
        markers = [
            TourMarker(
                id=link.marker.id,
                name=link.marker.name,
                type=link.marker.type,
                latitude=link.marker.latitude,
                longitude=link.marker.longitude,
                notes=link.marker.notes,
                url=link.marker.url,
                is_unesco=link.marker.is_unesco,
                trip_id=link.marker.trip_id,
                position=link.position,
            )
            for link in tour.marker_links
        ]
        return cls(
            id=tour.id,
            name=tour.name,
            trip_id=tour.trip_id,
            parent_tour_id=tour.parent_tour_id,
            position=tour.position,
            created_at=tour.created_at,
            updated_at=tour.updated_at,
            markers=markers,
            sub_tours=[cls.from_tour(sub) for sub in tour.sub_tours],
        )
