"""
여행 관련 비즈니스 로직
"""

import logging
import secrets

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import BusinessLogicError
from app.models import CollaborationRole, Marker, Trip, TripCollaborator, User
from app.services.static_image import refresh_viewport_image

logger = logging.getLogger(__name__)

DEFAULT_TRIP_NAME = "Default"


def get_trip_or_404(db: Session, trip_id: int) -> Trip:
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
    return trip


def list_accessible_trips(db: Session, user: User) -> list[Trip]:
    """소유하거나 공유받은 여행 (생성순)"""
    shared_ids = db.query(TripCollaborator.trip_id).filter(TripCollaborator.user_id == user.id)
    return (
        db.query(Trip)
        .filter(or_(Trip.user_id == user.id, Trip.id.in_(shared_ids)))
        .order_by(Trip.created_at.asc(), Trip.id.asc())
        .all()
    )


def list_all_trips(db: Session) -> list[Trip]:
    return db.query(Trip).order_by(Trip.created_at.asc(), Trip.id.asc()).all()


def ensure_default_trip(db: Session, user: User) -> Trip:
    """여행이 하나도 없으면 기본 여행을 생성"""
    trip = (
        db.query(Trip)
        .filter(Trip.user_id == user.id)
        .order_by(Trip.created_at.asc(), Trip.id.asc())
        .first()
    )
    if trip is None:
        trip = Trip(user_id=user.id, name=DEFAULT_TRIP_NAME)
        db.add(trip)
        db.flush()
        logger.info(f"기본 여행 생성: user_id={user.id}, trip_id={trip.id}")
    return trip


def markers_belong_to_trip(trip: Trip, *markers: Marker) -> bool:
    return all(marker.trip_id == trip.id for marker in markers)


def create_trip(db: Session, user: User, data: dict) -> Trip:
    trip = Trip(user_id=user.id, **data)
    refresh_viewport_image(trip)
    db.add(trip)
    db.commit()
    db.refresh(trip)
    logger.info(f"여행 생성: trip_id={trip.id}, user_id={user.id}")
    return trip


def update_trip(db: Session, trip: Trip, data: dict) -> Trip:
    viewport_changed = False
    for field, value in data.items():
        if field.startswith("viewport_"):
            viewport_changed = True
        setattr(trip, field, value)

    if viewport_changed:
        refresh_viewport_image(trip)

    db.commit()
    db.refresh(trip)
    return trip


def generate_invitation_token(db: Session, trip: Trip) -> str:
    """공유 링크 토큰 (64자 hex) 재발급"""
    trip.invitation_token = secrets.token_hex(32)
    db.commit()
    return trip.invitation_token


def invitation_url(trip: Trip) -> str | None:
    if not trip.invitation_token:
        return None
    return f"{settings.frontend_url}/trips/preview/{trip.invitation_token}"


def get_trip_by_invitation_token(db: Session, token: str) -> Trip:
    trip = db.query(Trip).filter(Trip.invitation_token == token).first()
    if not trip:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
    return trip


def join_trip(db: Session, trip: Trip, user: User) -> TripCollaborator:
    if trip.is_owner(user):
        raise BusinessLogicError("You are already the owner of this trip", status_code=400)
    if trip.is_collaborator(user):
        raise BusinessLogicError("You are already a collaborator on this trip", status_code=400)

    link = TripCollaborator(user_id=user.id, collaboration_role=CollaborationRole.EDITOR.value)
    trip.collaborators.append(link)
    db.commit()
    logger.info(f"여행 참여: trip_id={trip.id}, user_id={user.id}")
    return link


def add_collaborator(
    db: Session, trip: Trip, email: str, role: CollaborationRole = CollaborationRole.EDITOR
) -> TripCollaborator:
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user:
        raise BusinessLogicError(
            "No user found with this email address",
            errors=[{"field": "email", "message": "No user found with this email address", "type": "exists"}],
        )
    if trip.is_owner(user):
        raise BusinessLogicError(
            "The trip owner cannot be added as a collaborator",
            errors=[{"field": "email", "message": "The trip owner cannot be added as a collaborator", "type": "owner"}],
        )
    if trip.is_collaborator(user):
        raise BusinessLogicError(
            "This user is already a collaborator",
            errors=[{"field": "email", "message": "This user is already a collaborator", "type": "unique"}],
        )

    link = TripCollaborator(user_id=user.id, collaboration_role=role.value)
    trip.collaborators.append(link)
    db.commit()
    db.refresh(link)
    logger.info(f"공동작업자 추가: trip_id={trip.id}, user_id={user.id}")
    return link


def remove_collaborator(db: Session, trip: Trip, user_id: int) -> None:
    link = next((c for c in trip.collaborators if c.user_id == user_id), None)
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collaborator not found")
    trip.collaborators.remove(link)
    db.commit()
    logger.info(f"공동작업자 제거: trip_id={trip.id}, user_id={user_id}")
