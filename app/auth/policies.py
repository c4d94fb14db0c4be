"""
리소스 접근 정책

관리자는 모든 검사를 통과합니다.
- 여행: 조회/수정은 소유자 또는 공동작업자, 삭제는 소유자만
- 투어: 소속 여행의 권한을 따름
- 마커: 수정/삭제는 생성자만
"""

from fastapi import HTTPException, status

from app.models import Marker, Tour, Trip, User


def can_view_trip(user: User, trip: Trip) -> bool:
    return user.is_admin or trip.has_access(user)


def can_update_trip(user: User, trip: Trip) -> bool:
    return user.is_admin or trip.has_access(user)


def can_delete_trip(user: User, trip: Trip) -> bool:
    return user.is_admin or trip.is_owner(user)


def can_manage_collaborators(user: User, trip: Trip) -> bool:
    # 관리자라도 소유자가 아니면 공동작업자를 관리할 수 없음
    return trip.is_owner(user)


def can_access_tour(user: User, tour: Tour) -> bool:
    return can_view_trip(user, tour.trip)


def can_update_marker(user: User, marker: Marker) -> bool:
    return user.is_admin or marker.user_id == user.id


def authorize(allowed: bool, message: str = "This action is unauthorized.") -> None:
    """정책 결과가 거부면 403"""
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
