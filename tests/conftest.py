"""
Pytest configuration and fixtures for Trip Map backend tests.
"""

import os
import sys
from typing import Generator

# 설정은 import 시점에 검증되므로 app을 불러오기 전에 환경 변수를 지정
os.environ.setdefault("JWT_SECRET_KEY", "test_secret_key_for_testing_only")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["MAIL_USERNAME"] = ""
os.environ["MAIL_PASSWORD"] = ""

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.auth.utils import create_user_token, get_password_hash
from app.config import settings
from app.database import Base, enable_sqlite_foreign_keys, get_db
from app.models import Marker, Tour, Trip, TripCollaborator, User, UserRole, utcnow
from app.services.http_client import get_http_client
from main import app

# 테스트용 데이터베이스 URL (SQLite in-memory)
TEST_DATABASE_URL = "sqlite:///:memory:"

# 테스트용 엔진 생성
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# 앱 엔진과 같은 연결 설정 (외래 키 제약 활성화)
event.listen(test_engine, "connect", enable_sqlite_foreign_keys)


# 테스트용 세션 팩토리
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# 해싱 비용을 줄이기 위해 한 번만 계산
DEFAULT_PASSWORD = "password123"
DEFAULT_PASSWORD_HASH = get_password_hash(DEFAULT_PASSWORD)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """
    각 테스트 함수마다 새로운 데이터베이스 세션을 생성합니다.
    테스트가 끝나면 데이터베이스를 초기화합니다.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def mapbox_handler():
    """
    외부 API 응답을 정의하는 핸들러 목록
    테스트에서 handlers.append(fn)으로 응답 함수를 등록합니다.
    """
    requests: list[httpx.Request] = []
    handlers = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if not handlers:
            return httpx.Response(500, json={"message": "no handler registered"})
        return handlers[0](request)

    handler.requests = requests
    handler.handlers = handlers
    return handler


@pytest.fixture(scope="function")
def client(db_session: Session, mapbox_handler) -> Generator[TestClient, None, None]:
    """
    테스트용 FastAPI 클라이언트를 생성합니다.
    데이터베이스와 외부 HTTP 클라이언트 의존성을 오버라이드합니다.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    def override_get_http_client():
        with httpx.Client(transport=httpx.MockTransport(mapbox_handler)) as http_client:
            yield http_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_client] = override_get_http_client

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def mock_settings(monkeypatch):
    """외부 API 키가 설정된 상태로 모킹합니다."""
    monkeypatch.setattr(settings, "mapbox_access_token", "pk.test-token")
    monkeypatch.setattr(settings, "google_maps_api_key", "google-test-key")
    monkeypatch.setattr(settings, "mapbox_monthly_request_limit", 10000)
    return settings


def make_user(db: Session, email: str, name: str = "User", role: UserRole = UserRole.USER) -> User:
    user = User(
        name=name,
        email=email,
        password_hash=DEFAULT_PASSWORD_HASH,
        role=role,
        email_verified_at=utcnow(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user.id, user.email)}"}


def make_trip(db: Session, owner: User, name: str = "Japan 2026", **kwargs) -> Trip:
    trip = Trip(user_id=owner.id, name=name, **kwargs)
    db.add(trip)
    db.commit()
    db.refresh(trip)
    return trip


def make_marker(
    db: Session, trip: Trip, user: User, name: str = "Marker", latitude: float = 35.0, longitude: float = 135.0
) -> Marker:
    marker = Marker(
        name=name,
        type="point of interest",
        latitude=latitude,
        longitude=longitude,
        trip_id=trip.id,
        user_id=user.id,
    )
    db.add(marker)
    db.commit()
    db.refresh(marker)
    return marker


def make_tour(db: Session, trip: Trip, name: str = "Day 1", parent: Tour | None = None, position: int = 0) -> Tour:
    tour = Tour(name=name, trip_id=trip.id, parent_tour_id=parent.id if parent else None, position=position)
    db.add(tour)
    db.commit()
    db.refresh(tour)
    return tour


def share_trip(db: Session, trip: Trip, user: User) -> None:
    db.add(TripCollaborator(trip_id=trip.id, user_id=user.id))
    db.commit()
    db.refresh(trip)


@pytest.fixture
def owner(db_session: Session) -> User:
    return make_user(db_session, "owner@example.com", "Owner")


@pytest.fixture
def other_user(db_session: Session) -> User:
    return make_user(db_session, "other@example.com", "Other")


@pytest.fixture
def admin(db_session: Session) -> User:
    return make_user(db_session, "admin@example.com", "Admin", role=UserRole.ADMIN)


@pytest.fixture
def trip(db_session: Session, owner: User) -> Trip:
    return make_trip(db_session, owner)
