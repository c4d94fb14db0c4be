"""여행 공동작업자 API"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.auth.policies import authorize, can_manage_collaborators, can_view_trip
from app.database import get_db
from app.models import TripCollaborator, User
from app.schemas.trip_schemas import CollaboratorAdd, CollaboratorResponse
from app.services import trip_service

router = APIRouter(prefix="/trips/{trip_id}/collaborators", tags=["Collaborators"])

OWNER_ONLY_MESSAGE = "Only the trip owner can manage collaborators."


def _to_response(link: TripCollaborator) -> CollaboratorResponse:
    return CollaboratorResponse(
        id=link.user.id,
        name=link.user.name,
        email=link.user.email,
        collaboration_role=link.collaboration_role,
        joined_at=link.created_at,
    )


@router.get("", response_model=list[CollaboratorResponse])
def list_collaborators(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    trip = trip_service.get_trip_or_404(db, trip_id)
    authorize(can_view_trip(current_user, trip))
    return [_to_response(link) for link in trip.collaborators]


@router.post("", response_model=CollaboratorResponse, status_code=status.HTTP_201_CREATED)
def add_collaborator(
    trip_id: int,
    payload: CollaboratorAdd,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    trip = trip_service.get_trip_or_404(db, trip_id)
    authorize(can_manage_collaborators(current_user, trip), OWNER_ONLY_MESSAGE)

    link = trip_service.add_collaborator(db, trip, payload.email, payload.role)
    return _to_response(link)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_collaborator(
    trip_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    trip = trip_service.get_trip_or_404(db, trip_id)
    authorize(can_manage_collaborators(current_user, trip), OWNER_ONLY_MESSAGE)

    trip_service.remove_collaborator(db, trip, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
