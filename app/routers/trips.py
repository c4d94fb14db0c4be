"""여행 API"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.auth.policies import authorize, can_delete_trip, can_update_trip, can_view_trip
from app.database import get_db
from app.models import Marker, Trip, User
from app.schemas.auth_schemas import UserSummary
from app.schemas.trip_schemas import (
    InvitationTokenResponse,
    TripCreate,
    TripDetailResponse,
    TripPreviewMarker,
    TripPreviewResponse,
    TripResponse,
    TripUpdate,
)
from app.services import trip_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips", tags=["Trips"])


def _detail(trip: Trip, user: User) -> TripDetailResponse:
    return TripDetailResponse(
        **TripResponse.model_validate(trip).model_dump(),
        owner=UserSummary.model_validate(trip.owner),
        is_owner=trip.is_owner(user),
        can_delete=can_delete_trip(user, trip),
    )


@router.get("", response_model=list[TripResponse])
def list_trips(
    all_trips: bool = Query(False, alias="all", description="관리자 전용: 전체 여행 조회"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """소유하거나 공유받은 여행 목록"""
    if all_trips:
        authorize(current_user.is_admin)
        return trip_service.list_all_trips(db)
    return trip_service.list_accessible_trips(db, current_user)


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
def create_trip(
    trip_data: TripCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return trip_service.create_trip(db, current_user, trip_data.model_dump(exclude_unset=True))


@router.get("/preview/{token}", response_model=TripPreviewResponse)
def preview_trip(
    token: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """공유 링크로 여행 미리보기"""
    trip = trip_service.get_trip_by_invitation_token(db, token)
    markers = (
        db.query(Marker)
        .filter(Marker.trip_id == trip.id)
        .order_by(Marker.created_at.asc(), Marker.id.asc())
        .all()
    )
    return TripPreviewResponse(
        trip=TripResponse.model_validate(trip),
        owner=UserSummary.model_validate(trip.owner),
        markers=[TripPreviewMarker.model_validate(m) for m in markers],
        is_collaborator=trip.has_access(current_user),
    )


@router.post("/join/{token}")
def join_trip(
    token: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """공유 링크로 여행에 참여 (editor)"""
    trip = trip_service.get_trip_by_invitation_token(db, token)
    trip_service.join_trip(db, trip, current_user)
    return {
        "message": "Successfully joined the trip",
        "trip": TripResponse.model_validate(trip),
    }


@router.get("/{trip_id}", response_model=TripDetailResponse)
def get_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    trip = trip_service.get_trip_or_404(db, trip_id)
    authorize(can_view_trip(current_user, trip))
    return _detail(trip, current_user)


@router.put("/{trip_id}", response_model=TripDetailResponse)
def update_trip(
    trip_id: int,
    trip_data: TripUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    trip = trip_service.get_trip_or_404(db, trip_id)
    authorize(can_update_trip(current_user, trip))

    data = trip_data.model_dump(exclude_unset=True)
    if "name" in data and data["name"] is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="The name field may not be null"
        )

    trip = trip_service.update_trip(db, trip, data)
    return _detail(trip, current_user)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    trip = trip_service.get_trip_or_404(db, trip_id)
    authorize(can_delete_trip(current_user, trip))

    db.delete(trip)
    db.commit()
    logger.info(f"여행 삭제: trip_id={trip_id}, user_id={current_user.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{trip_id}/invitation-token", response_model=InvitationTokenResponse)
def generate_invitation_token(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """공유 링크 토큰 발급 (기존 토큰은 무효화)"""
    trip = trip_service.get_trip_or_404(db, trip_id)
    authorize(can_update_trip(current_user, trip))

    token = trip_service.generate_invitation_token(db, trip)
    return InvitationTokenResponse(token=token, url=trip_service.invitation_url(trip))
