"""경로 API"""
import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.auth.policies import authorize, can_update_trip, can_view_trip
from app.core.exceptions import BusinessLogicError
from app.database import get_db
from app.models import Marker, Route, Tour, User
from app.schemas.route_schemas import RouteCreate, RouteResponse
from app.services import trip_service
from app.services.http_client import get_http_client
from app.services.mapbox_limiter import MapboxRequestLimiter
from app.services.routing_service import RoutingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/routes", tags=["Routes"])


def _get_route_or_404(db: Session, route_id: int) -> Route:
    route = db.query(Route).filter(Route.id == route_id).first()
    if not route:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Route not found")
    return route


def _get_marker(db: Session, marker_id: str, field: str) -> Marker:
    marker = db.query(Marker).filter(Marker.id == marker_id).first()
    if not marker:
        message = f"The selected {field.replace('_', ' ')} is invalid."
        raise BusinessLogicError(message, errors=[{"field": field, "message": message, "type": "exists"}])
    return marker


@router.get("", response_model=list[RouteResponse])
def list_routes(
    trip_id: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """여행의 경로 목록 (최신순)"""
    trip = trip_service.get_trip_or_404(db, trip_id)
    authorize(can_view_trip(current_user, trip))

    routes = (
        db.query(Route)
        .filter(Route.trip_id == trip.id)
        .order_by(Route.created_at.desc(), Route.id.desc())
        .all()
    )
    return [RouteResponse.from_route(route) for route in routes]


@router.post("", response_model=RouteResponse, status_code=status.HTTP_201_CREATED)
def create_route(
    route_data: RouteCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: httpx.Client = Depends(get_http_client),
):
    trip = trip_service.get_trip_or_404(db, route_data.trip_id)
    authorize(can_update_trip(current_user, trip))

    start = _get_marker(db, route_data.start_marker_id, "start_marker_id")
    end = _get_marker(db, route_data.end_marker_id, "end_marker_id")
    if not trip_service.markers_belong_to_trip(trip, start, end):
        raise BusinessLogicError("Markers must belong to the same trip")

    if route_data.tour_id is not None:
        tour = db.query(Tour).filter(Tour.id == route_data.tour_id).first()
        if tour is None or tour.trip_id != trip.id:
            raise BusinessLogicError(
                "Tour does not belong to this trip",
                errors=[{"field": "tour_id", "message": "Tour does not belong to this trip", "type": "value_error"}],
            )

    # 제공자 오류는 main.py의 핸들러가 404/429/503으로 변환
    routing = RoutingService(client, MapboxRequestLimiter(db))
    result = routing.calculate_route(start, end, route_data.transport_mode)

    route = Route(
        trip_id=trip.id,
        tour_id=route_data.tour_id,
        start_marker_id=start.id,
        end_marker_id=end.id,
        transport_mode=route_data.transport_mode,
        distance=result["distance"],
        duration=result["duration"],
        geometry=result["geometry"],
        transit_details=result.get("transit_details"),
        alternatives=result.get("alternatives"),
        warning=result.get("warning"),
    )
    db.add(route)
    db.commit()
    db.refresh(route)
    logger.info(
        f"경로 생성: route_id={route.id}, trip_id={trip.id}, mode={route.transport_mode.value}, "
        f"distance={route.distance}m"
    )
    return RouteResponse.from_route(route)


@router.get("/{route_id}", response_model=RouteResponse)
def get_route(
    route_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    route = _get_route_or_404(db, route_id)
    authorize(can_view_trip(current_user, route.trip))
    return RouteResponse.from_route(route)


@router.delete("/{route_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_route(
    route_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    route = _get_route_or_404(db, route_id)
    authorize(can_update_trip(current_user, route.trip))

    db.delete(route)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
