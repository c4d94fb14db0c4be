"""마커 API"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.auth.policies import authorize, can_update_marker, can_update_trip, can_view_trip
from app.core.exceptions import BusinessLogicError
from app.database import get_db
from app.models import Marker, MarkerTour, MarkerType, Tour, User
from app.schemas.marker_schemas import (
    MarkerCreate,
    MarkerResponse,
    MarkerTypeOption,
    MarkerUpdate,
)
from app.services import trip_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/markers", tags=["Markers"])


def _get_marker_or_404(db: Session, marker_id: str) -> Marker:
    marker = db.query(Marker).filter(Marker.id == marker_id).first()
    if not marker:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Marker not found")
    return marker


def _resolve_trip(db: Session, user: User, trip_id: int | None):
    """trip_id가 없으면 사용자의 기본 여행"""
    if trip_id is None:
        trip = trip_service.ensure_default_trip(db, user)
        db.commit()
        return trip
    return trip_service.get_trip_or_404(db, trip_id)


def _column_values(data: dict) -> dict:
    if data.get("url") is not None:
        data["url"] = str(data["url"])
    return data


@router.get("/types", response_model=list[MarkerTypeOption])
def list_marker_types():
    """알려진 마커 유형 목록"""
    return [MarkerTypeOption(value=t.value, label=t.value.title()) for t in MarkerType]


@router.get("", response_model=list[MarkerResponse])
def list_markers(
    trip_id: int | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    trip = _resolve_trip(db, current_user, trip_id)
    authorize(can_view_trip(current_user, trip))
    return (
        db.query(Marker)
        .filter(Marker.trip_id == trip.id)
        .order_by(Marker.created_at.asc(), Marker.id.asc())
        .all()
    )


@router.post("", response_model=MarkerResponse, status_code=status.HTTP_201_CREATED)
def create_marker(
    marker_data: MarkerCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    trip = _resolve_trip(db, current_user, marker_data.trip_id)
    authorize(can_update_trip(current_user, trip))

    data = _column_values(marker_data.model_dump(exclude={"id", "trip_id", "tour_id"}))
    marker = Marker(**data, trip_id=trip.id, user_id=current_user.id)

    if marker_data.id is not None:
        marker_id = str(marker_data.id)
        if db.query(Marker.id).filter(Marker.id == marker_id).first():
            raise BusinessLogicError(
                "The id has already been taken.",
                errors=[{"field": "id", "message": "The id has already been taken.", "type": "unique"}],
            )
        marker.id = marker_id

    tour = None
    if marker_data.tour_id is not None:
        tour = db.query(Tour).filter(Tour.id == marker_data.tour_id).first()
        if tour is None or tour.trip_id != trip.id:
            raise BusinessLogicError(
                "Tour does not belong to this trip",
                errors=[{"field": "tour_id", "message": "Tour does not belong to this trip", "type": "value_error"}],
            )

    try:
        db.add(marker)
        db.flush()
        if tour is not None:
            max_position = max((link.position for link in tour.marker_links), default=-1)
            tour.marker_links.append(MarkerTour(marker_id=marker.id, position=max_position + 1))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(marker)
    logger.info(f"마커 생성: marker_id={marker.id}, trip_id={trip.id}, tour_id={marker_data.tour_id}")
    return marker


@router.put("/{marker_id}", response_model=MarkerResponse)
def update_marker(
    marker_id: str,
    marker_data: MarkerUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    marker = _get_marker_or_404(db, marker_id)
    authorize(can_update_marker(current_user, marker))

    for field, value in _column_values(marker_data.model_dump(exclude_unset=True)).items():
        setattr(marker, field, value)

    db.commit()
    db.refresh(marker)
    return marker


@router.delete("/{marker_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_marker(
    marker_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    marker = _get_marker_or_404(db, marker_id)
    authorize(can_update_marker(current_user, marker))

    db.delete(marker)
    db.commit()
    logger.info(f"마커 삭제: marker_id={marker_id}, user_id={current_user.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
