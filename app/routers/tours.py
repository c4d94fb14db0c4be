"""투어 API (하위 투어, 마커 순서 포함)"""
import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.auth.policies import authorize, can_access_tour, can_update_trip, can_view_trip
from app.core.exceptions import BusinessLogicError
from app.database import get_db
from app.models import Marker, Tour, User
from app.schemas.tour_schemas import (
    SubTourReorder,
    TourCreate,
    TourMarkerReorder,
    TourMarkerRequest,
    TourResponse,
    TourUpdate,
)
from app.services import tour_service, trip_service
from app.services.http_client import get_http_client
from app.services.mapbox_limiter import MapboxRequestLimiter
from app.services.mapbox_matrix import MAX_LOCATIONS, MapboxMatrixService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tours", tags=["Tours"])


def _get_tour_or_404(db: Session, tour_id: int) -> Tour:
    tour = db.query(Tour).filter(Tour.id == tour_id).first()
    if not tour:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tour not found")
    return tour


def _get_marker_for_request(db: Session, marker_id: str) -> Marker:
    marker = db.query(Marker).filter(Marker.id == marker_id).first()
    if not marker:
        raise BusinessLogicError(
            "The selected marker id is invalid.",
            errors=[{"field": "marker_id", "message": "The selected marker id is invalid.", "type": "exists"}],
        )
    return marker


@router.get("", response_model=list[TourResponse])
def list_tours(
    trip_id: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """최상위 투어 목록 (하위 투어는 중첩)"""
    trip = trip_service.get_trip_or_404(db, trip_id)
    authorize(can_view_trip(current_user, trip))

    tours = (
        db.query(Tour)
        .filter(Tour.trip_id == trip.id, Tour.parent_tour_id.is_(None))
        .order_by(Tour.position.asc(), Tour.id.asc())
        .all()
    )
    return [TourResponse.from_tour(tour) for tour in tours]


@router.post("", response_model=TourResponse, status_code=status.HTTP_201_CREATED)
def create_tour(
    tour_data: TourCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    trip = trip_service.get_trip_or_404(db, tour_data.trip_id)
    authorize(can_update_trip(current_user, trip))

    parent = None
    if tour_data.parent_tour_id is not None:
        parent = db.query(Tour).filter(Tour.id == tour_data.parent_tour_id).first()
        if parent is None:
            raise BusinessLogicError(
                "The selected parent tour id is invalid.",
                errors=[{
                    "field": "parent_tour_id",
                    "message": "The selected parent tour id is invalid.",
                    "type": "exists",
                }],
            )

    tour = tour_service.create_tour(db, trip, tour_data.name, parent)
    return TourResponse.from_tour(tour)


@router.get("/{tour_id}", response_model=TourResponse)
def get_tour(
    tour_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tour = _get_tour_or_404(db, tour_id)
    authorize(can_access_tour(current_user, tour))
    return TourResponse.from_tour(tour)


@router.put("/{tour_id}", response_model=TourResponse)
def update_tour(
    tour_id: int,
    tour_data: TourUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tour = _get_tour_or_404(db, tour_id)
    authorize(can_access_tour(current_user, tour))
    return TourResponse.from_tour(tour_service.rename_tour(db, tour, tour_data.name))


@router.delete("/{tour_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tour(
    tour_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """하위 투어도 함께 삭제"""
    tour = _get_tour_or_404(db, tour_id)
    authorize(can_access_tour(current_user, tour))

    db.delete(tour)
    db.commit()
    logger.info(f"투어 삭제: tour_id={tour_id}, user_id={current_user.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{tour_id}/markers", response_model=TourResponse)
def attach_marker(
    tour_id: int,
    payload: TourMarkerRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tour = _get_tour_or_404(db, tour_id)
    authorize(can_access_tour(current_user, tour))

    marker = _get_marker_for_request(db, payload.marker_id)
    return TourResponse.from_tour(tour_service.attach_marker(db, tour, marker))


@router.delete("/{tour_id}/markers", response_model=TourResponse)
def detach_marker(
    tour_id: int,
    payload: TourMarkerRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tour = _get_tour_or_404(db, tour_id)
    authorize(can_access_tour(current_user, tour))

    _get_marker_for_request(db, payload.marker_id)
    return TourResponse.from_tour(tour_service.detach_marker(db, tour, payload.marker_id))


@router.put("/{tour_id}/markers/reorder", response_model=TourResponse)
def reorder_markers(
    tour_id: int,
    payload: TourMarkerReorder,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tour = _get_tour_or_404(db, tour_id)
    authorize(can_access_tour(current_user, tour))
    return TourResponse.from_tour(tour_service.reorder_markers(db, tour, payload.marker_ids))


@router.put("/{tour_id}/sub-tours/reorder", response_model=TourResponse)
def reorder_sub_tours(
    tour_id: int,
    payload: SubTourReorder,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tour = _get_tour_or_404(db, tour_id)
    authorize(can_access_tour(current_user, tour))
    return TourResponse.from_tour(tour_service.reorder_sub_tours(db, tour, payload.sub_tour_ids))


@router.post("/{tour_id}/markers/sort", response_model=TourResponse)
def sort_markers(
    tour_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: httpx.Client = Depends(get_http_client),
):
    """도보 거리 기준 최근접 이웃 순서로 자동 정렬"""
    tour = _get_tour_or_404(db, tour_id)
    authorize(can_access_tour(current_user, tour))

    markers = tour.markers
    if len(markers) < 2:
        raise BusinessLogicError("Tour must have at least 2 markers to sort")
    if len(markers) > MAX_LOCATIONS:
        raise BusinessLogicError(
            f"Tour has too many markers. Maximum is {MAX_LOCATIONS} markers for automatic sorting."
        )

    matrix_service = MapboxMatrixService(client, MapboxRequestLimiter(db))
    try:
        matrix = matrix_service.calculate_matrix(markers)
    except ValueError as e:
        raise BusinessLogicError(str(e)) from e

    # 같은 마커가 여러 번 들어갈 수 있으므로 인덱스 기준으로 정렬
    order = tour_service.sort_markers_nearest_neighbor(list(range(len(markers))), matrix["distances"])
    total_distance = tour_service.calculate_total_distance(order, matrix["distances"])
    tour = tour_service.reorder_markers(db, tour, [markers[i].id for i in order])
    logger.info(
        f"투어 마커 자동 정렬: tour_id={tour.id}, marker_count={len(markers)}, "
        f"total_distance={total_distance:.0f}m"
    )
    return TourResponse.from_tour(tour)
