"""
여행 지도 데이터베이스 모델 정의
SQLAlchemy ORM 모델들

각 모델의 주석에는 다음과 같은 정보가 포함됩니다:
- 설명: 테이블의 용도와 주요 기능
- 불변 조건: 애플리케이션이 유지하는 규칙
"""

from __future__ import annotations

import enum
import secrets
import string
import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """SQLite는 타임존 정보를 저장하지 않으므로 naive 값은 UTC로 간주"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# ===========================================
# Enum 정의
# ===========================================


class UserRole(str, enum.Enum):
    """사용자 역할"""

    ADMIN = "admin"
    USER = "user"

    @property
    def label(self) -> str:
        return "Administrator" if self is UserRole.ADMIN else "User"


class CollaborationRole(str, enum.Enum):
    """여행 공유 역할 (소유자는 trip_user 테이블에 저장되지 않음)"""

    EDITOR = "editor"


class TransportMode(str, enum.Enum):
    """경로 이동 수단"""

    DRIVING_CAR = "driving-car"
    CYCLING_REGULAR = "cycling-regular"
    FOOT_WALKING = "foot-walking"
    PUBLIC_TRANSPORT = "public-transport"

    @property
    def label(self) -> str:
        return {
            TransportMode.DRIVING_CAR: "Car",
            TransportMode.CYCLING_REGULAR: "Bicycle",
            TransportMode.FOOT_WALKING: "Walking",
            TransportMode.PUBLIC_TRANSPORT: "Public Transport",
        }[self]


class MarkerType(str, enum.Enum):
    """알려진 마커 유형 (마커의 type 컬럼은 자유 문자열)"""

    RESTAURANT = "restaurant"
    POINT_OF_INTEREST = "point of interest"
    QUESTION = "question"
    TIP = "tip"
    HOTEL = "hotel"
    MUSEUM = "museum"
    RUIN = "ruin"
    TEMPLE_CHURCH = "temple/church"
    FESTIVAL_PARTY = "festival/party"
    LEISURE = "leisure"
    SIGHTSEEING = "sightseeing"
    NATURAL_ATTRACTION = "natural attraction"
    CITY = "city"
    VILLAGE = "village"
    REGION = "region"
    HALTESTELLE = "haltestelle"


# ===========================================
# 사용자 및 인증 관련 테이블
# ===========================================


class User(Base):
    """
    사용자 계정 테이블
    설명: 로그인 계정, 역할(admin/user). 여행과 마커를 소유
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    email_verified_at = Column(DateTime(timezone=True))
    last_login_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    trips = relationship("Trip", back_populates="owner", cascade="all, delete-orphan")
    markers = relationship("Marker", back_populates="user", cascade="all, delete-orphan")
    collaborations = relationship(
        "TripCollaborator", back_populates="user", cascade="all, delete-orphan"
    )
    sent_invitations = relationship(
        "UserInvitation", back_populates="inviter", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_email_verified(self) -> bool:
        return self.email_verified_at is not None


class UserInvitation(Base):
    """
    사용자 초대 테이블
    설명: 관리자가 발급하는 기간 제한 가입 토큰
    불변 조건: accepted_at이 없고 expires_at이 현재보다 미래일 때만 유효
    """

    __tablename__ = "user_invitations"

    TOKEN_LENGTH = 64

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    token = Column(String(64), unique=True, index=True, nullable=False)
    invited_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    accepted_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    inviter = relationship("User", back_populates="sent_invitations")

    def is_expired(self, now: datetime | None = None) -> bool:
        return ensure_utc(self.expires_at) <= (now or utcnow())

    def is_accepted(self) -> bool:
        return self.accepted_at is not None

    def is_valid(self, now: datetime | None = None) -> bool:
        return not self.is_expired(now) and not self.is_accepted()

    @classmethod
    def generate_token(cls) -> str:
        alphabet = string.ascii_letters + string.digits
        return "".join(secrets.choice(alphabet) for _ in range(cls.TOKEN_LENGTH))


# ===========================================
# 여행 관련 테이블
# ===========================================


class Trip(Base):
    """
    여행 테이블
    설명: 사용자가 소유하는 여행 계획. 마커, 투어, 경로의 컨테이너
    불변 조건: 삭제는 소유자만, 조회/수정은 소유자와 공동 작업자
    """

    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    country = Column(String(2))
    notes = Column(Text)

    # 지도 뷰포트
    viewport_latitude = Column(Float)
    viewport_longitude = Column(Float)
    viewport_zoom = Column(Float)
    viewport_static_image_url = Column(String(2048))

    # 계획 기간 (년/월/일 각각 선택 입력)
    planned_start_year = Column(Integer)
    planned_start_month = Column(Integer)
    planned_start_day = Column(Integer)
    planned_end_year = Column(Integer)
    planned_end_month = Column(Integer)
    planned_end_day = Column(Integer)
    planned_duration_days = Column(Integer)

    invitation_token = Column(String(64), unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="trips")
    collaborators = relationship(
        "TripCollaborator", back_populates="trip", cascade="all, delete-orphan"
    )
    markers = relationship("Marker", back_populates="trip", cascade="all, delete-orphan")
    tours = relationship("Tour", back_populates="trip", cascade="all, delete-orphan")
    routes = relationship("Route", back_populates="trip", cascade="all, delete-orphan")

    def is_owner(self, user: User) -> bool:
        return self.user_id == user.id

    def is_collaborator(self, user: User) -> bool:
        return any(link.user_id == user.id for link in self.collaborators)

    def has_access(self, user: User) -> bool:
        """소유자이거나 공동 작업자인지 확인"""
        return self.is_owner(user) or self.is_collaborator(user)

    @property
    def has_viewport(self) -> bool:
        return (
            self.viewport_latitude is not None
            and self.viewport_longitude is not None
            and self.viewport_zoom is not None
        )


class TripCollaborator(Base):
    """
    여행 공유 테이블 (trip_user)
    설명: 여행과 사용자의 다대다 연결, 공유 역할 포함
    """

    __tablename__ = "trip_user"
    __table_args__ = (
        UniqueConstraint("trip_id", "user_id", name="uq_trip_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    collaboration_role = Column(String(50), default=CollaborationRole.EDITOR.value, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    trip = relationship("Trip", back_populates="collaborators")
    user = relationship("User", back_populates="collaborations")


class Marker(Base):
    """
    마커 테이블
    설명: 여행에 속한 위치 정보(관심 지점). 생성한 사용자만 수정/삭제 가능
    """

    __tablename__ = "markers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    type = Column(String(100), default=MarkerType.POINT_OF_INTEREST.value, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    notes = Column(Text)
    url = Column(String(2048))
    is_unesco = Column(Boolean, default=False, nullable=False)
    ai_enriched = Column(Boolean, default=False, nullable=False)

    planned_start_year = Column(Integer)
    planned_start_month = Column(Integer)
    planned_start_day = Column(Integer)
    planned_end_year = Column(Integer)
    planned_end_month = Column(Integer)
    planned_end_day = Column(Integer)
    planned_duration_days = Column(Integer)

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    trip = relationship("Trip", back_populates="markers")
    user = relationship("User", back_populates="markers")
    tour_links = relationship("MarkerTour", back_populates="marker", cascade="all, delete-orphan")
    start_routes = relationship(
        "Route", foreign_keys="Route.start_marker_id", back_populates="start_marker", cascade="all, delete-orphan"
    )
    end_routes = relationship(
        "Route", foreign_keys="Route.end_marker_id", back_populates="end_marker", cascade="all, delete-orphan"
    )


class Tour(Base):
    """
    투어 테이블
    설명: 여행 안의 마커 묶음. parent_tour_id로 한 단계 하위 투어 구성
    불변 조건: 형제 투어 사이에서 이름은 대소문자 구분 없이 유일
    """

    __tablename__ = "tours"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_tour_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), index=True)
    position = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    trip = relationship("Trip", back_populates="tours")
    parent = relationship("Tour", remote_side=[id], back_populates="sub_tours")
    sub_tours = relationship(
        "Tour",
        back_populates="parent",
        cascade="all, delete-orphan",
        order_by=lambda: [Tour.position, Tour.id],
    )
    marker_links = relationship(
        "MarkerTour",
        back_populates="tour",
        cascade="all, delete-orphan",
        order_by=lambda: [MarkerTour.position, MarkerTour.id],
    )

    @property
    def markers(self) -> list[Marker]:
        return [link.marker for link in self.marker_links]


class MarkerTour(Base):
    """
    투어-마커 연결 테이블 (marker_tour)
    설명: position 순서를 가진 연결. 같은 마커가 여러 번 들어갈 수 있음
    """

    __tablename__ = "marker_tour"

    id = Column(Integer, primary_key=True, index=True)
    marker_id = Column(String(36), ForeignKey("markers.id", ondelete="CASCADE"), nullable=False, index=True)
    tour_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    marker = relationship("Marker", back_populates="tour_links")
    tour = relationship("Tour", back_populates="marker_links")


class Route(Base):
    """
    경로 테이블
    설명: 두 마커 사이의 계산된 경로 (거리 m, 시간 s, [lng, lat] 좌표 목록)
    불변 조건: 출발 마커와 도착 마커는 다르고 둘 다 같은 여행에 속함
    """

    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    tour_id = Column(Integer, ForeignKey("tours.id", ondelete="SET NULL"), index=True)
    start_marker_id = Column(String(36), ForeignKey("markers.id", ondelete="CASCADE"), nullable=False)
    end_marker_id = Column(String(36), ForeignKey("markers.id", ondelete="CASCADE"), nullable=False)
    transport_mode = Column(Enum(TransportMode), nullable=False)
    distance = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)
    geometry = Column(JSON, nullable=False)
    transit_details = Column(JSON)
    alternatives = Column(JSON)
    warning = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    trip = relationship("Trip", back_populates="routes")
    start_marker = relationship("Marker", foreign_keys=[start_marker_id], back_populates="start_routes")
    end_marker = relationship("Marker", foreign_keys=[end_marker_id], back_populates="end_routes")

    @property
    def distance_km(self) -> float:
        return round(self.distance / 1000, 2)

    @property
    def duration_minutes(self) -> int:
        return int(round(self.duration / 60))


class MapboxRequest(Base):
    """
    Mapbox 사용량 테이블
    설명: 월 단위(YYYY-MM) 요청 수와 마지막 요청 시각
    """

    __tablename__ = "mapbox_requests"

    id = Column(Integer, primary_key=True, index=True)
    period = Column(String(7), unique=True, index=True, nullable=False)
    count = Column(Integer, default=0, nullable=False)
    last_request_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
