"""
여행 API 및 접근 정책 테스트
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.config import settings
from app.models import Marker, Route, Tour, Trip, TransportMode, User
from conftest import auth_header, make_marker, make_tour, make_trip, share_trip


class TestTripCrud:
    """여행 생성/조회/수정/삭제"""

    def test_create_trip(self, client: TestClient, owner: User):
        response = client.post(
            "/api/trips",
            json={"name": "Italy", "country": "it", "planned_start_year": 2027},
            headers=auth_header(owner),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Italy"
        assert data["country"] == "IT"
        assert data["user_id"] == owner.id
        assert data["planned_start_year"] == 2027

    def test_create_trip_validation(self, client: TestClient, owner: User):
        response = client.post(
            "/api/trips",
            json={"name": "", "viewport_latitude": 91},
            headers=auth_header(owner),
        )

        assert response.status_code == 422
        fields = {e["field"] for e in response.json()["errors"]}
        assert {"name", "viewport_latitude"} <= fields

    def test_list_includes_owned_and_shared(
        self, client: TestClient, db_session: Session, owner: User, other_user: User
    ):
        own = make_trip(db_session, owner, "Own")
        shared = make_trip(db_session, other_user, "Shared")
        make_trip(db_session, other_user, "Private")
        share_trip(db_session, shared, owner)

        response = client.get("/api/trips", headers=auth_header(owner))

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [own.id, shared.id]

    def test_list_all_trips_is_admin_only(
        self, client: TestClient, db_session: Session, owner: User, admin: User
    ):
        make_trip(db_session, owner, "One")
        make_trip(db_session, owner, "Two")

        assert client.get("/api/trips?all=true", headers=auth_header(owner)).status_code == 403

        response = client.get("/api/trips?all=true", headers=auth_header(admin))
        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_show_trip_for_owner(self, client: TestClient, owner: User, trip: Trip):
        response = client.get(f"/api/trips/{trip.id}", headers=auth_header(owner))

        assert response.status_code == 200
        data = response.json()
        assert data["is_owner"] is True
        assert data["can_delete"] is True
        assert data["owner"]["email"] == owner.email

    def test_show_missing_trip(self, client: TestClient, owner: User):
        assert client.get("/api/trips/999", headers=auth_header(owner)).status_code == 404

    def test_update_trip(self, client: TestClient, owner: User, trip: Trip):
        response = client.put(
            f"/api/trips/{trip.id}",
            json={"notes": "Bring a rail pass"},
            headers=auth_header(owner),
        )

        assert response.status_code == 200
        assert response.json()["notes"] == "Bring a rail pass"
        assert response.json()["name"] == trip.name

    def test_delete_trip_cascades(
        self, client: TestClient, db_session: Session, owner: User, trip: Trip
    ):
        start = make_marker(db_session, trip, owner, "A")
        end = make_marker(db_session, trip, owner, "B")
        make_tour(db_session, trip)
        db_session.add(Route(
            trip_id=trip.id,
            start_marker_id=start.id,
            end_marker_id=end.id,
            transport_mode=TransportMode.FOOT_WALKING,
            distance=100,
            duration=60,
            geometry=[[135.0, 35.0], [135.1, 35.1]],
        ))
        db_session.commit()
        trip_id = trip.id

        response = client.delete(f"/api/trips/{trip_id}", headers=auth_header(owner))

        assert response.status_code == 204
        db_session.expire_all()
        assert db_session.get(Trip, trip_id) is None
        assert db_session.query(Marker).count() == 0
        assert db_session.query(Tour).count() == 0
        assert db_session.query(Route).count() == 0


class TestTripPolicies:
    """소유자/공동작업자/관리자 권한"""

    def test_stranger_cannot_view_update_or_delete(
        self, client: TestClient, other_user: User, trip: Trip
    ):
        headers = auth_header(other_user)

        assert client.get(f"/api/trips/{trip.id}", headers=headers).status_code == 403
        assert client.put(
            f"/api/trips/{trip.id}", json={"name": "Hijacked"}, headers=headers
        ).status_code == 403
        assert client.delete(f"/api/trips/{trip.id}", headers=headers).status_code == 403

    def test_collaborator_can_view_and_update_but_not_delete(
        self, client: TestClient, db_session: Session, other_user: User, trip: Trip
    ):
        share_trip(db_session, trip, other_user)
        headers = auth_header(other_user)

        view = client.get(f"/api/trips/{trip.id}", headers=headers)
        assert view.status_code == 200
        assert view.json()["is_owner"] is False
        assert view.json()["can_delete"] is False

        assert client.put(
            f"/api/trips/{trip.id}", json={"name": "Renamed"}, headers=headers
        ).status_code == 200
        assert client.delete(f"/api/trips/{trip.id}", headers=headers).status_code == 403

    def test_admin_bypasses_ownership(self, client: TestClient, admin: User, trip: Trip):
        headers = auth_header(admin)

        assert client.get(f"/api/trips/{trip.id}", headers=headers).status_code == 200
        assert client.put(
            f"/api/trips/{trip.id}", json={"name": "Admin edit"}, headers=headers
        ).status_code == 200
        assert client.delete(f"/api/trips/{trip.id}", headers=headers).status_code == 204

    def test_unauthenticated(self, client: TestClient, trip: Trip):
        assert client.get(f"/api/trips/{trip.id}").status_code == 401


class TestViewportImage:
    """뷰포트 정적 이미지 URL"""

    def test_generated_when_viewport_complete(self, client: TestClient, owner: User, mock_settings):
        response = client.post(
            "/api/trips",
            json={
                "name": "Kyoto",
                "viewport_latitude": 35.0116,
                "viewport_longitude": 135.7681,
                "viewport_zoom": 12,
            },
            headers=auth_header(owner),
        )

        url = response.json()["viewport_static_image_url"]
        assert url.startswith(f"{settings.mapbox_api_url}/styles/v1/{settings.mapbox_static_style}/static/")
        assert "135.7681,35.0116,12.0,0,0/800x400" in url
        assert "access_token=pk.test-token" in url

    def test_cleared_when_viewport_removed(
        self, client: TestClient, db_session: Session, owner: User, mock_settings
    ):
        trip = make_trip(
            db_session, owner, viewport_latitude=1.0, viewport_longitude=2.0, viewport_zoom=3.0,
            viewport_static_image_url="https://example.com/old.png",
        )

        response = client.put(
            f"/api/trips/{trip.id}", json={"viewport_zoom": None}, headers=auth_header(owner)
        )

        assert response.status_code == 200
        assert response.json()["viewport_static_image_url"] is None

    def test_left_empty_without_token(self, client: TestClient, owner: User, monkeypatch):
        monkeypatch.setattr(settings, "mapbox_access_token", "")

        response = client.post(
            "/api/trips",
            json={"name": "Oslo", "viewport_latitude": 59.9, "viewport_longitude": 10.7, "viewport_zoom": 10},
            headers=auth_header(owner),
        )

        assert response.status_code == 201
        assert response.json()["viewport_static_image_url"] is None


class TestTripSharing:
    """공유 링크로 여행 참여"""

    def test_generate_token(self, client: TestClient, owner: User, trip: Trip):
        response = client.post(f"/api/trips/{trip.id}/invitation-token", headers=auth_header(owner))

        assert response.status_code == 200
        data = response.json()
        assert len(data["token"]) == 64
        assert all(c in "0123456789abcdef" for c in data["token"])
        assert data["url"] == f"{settings.frontend_url}/trips/preview/{data['token']}"

    def test_regenerating_invalidates_previous_token(
        self, client: TestClient, owner: User, other_user: User, trip: Trip
    ):
        first = client.post(f"/api/trips/{trip.id}/invitation-token", headers=auth_header(owner)).json()
        client.post(f"/api/trips/{trip.id}/invitation-token", headers=auth_header(owner))

        response = client.get(f"/api/trips/preview/{first['token']}", headers=auth_header(other_user))
        assert response.status_code == 404

    def test_stranger_cannot_generate_token(self, client: TestClient, other_user: User, trip: Trip):
        response = client.post(f"/api/trips/{trip.id}/invitation-token", headers=auth_header(other_user))

        assert response.status_code == 403

    def test_preview_and_join(
        self, client: TestClient, db_session: Session, owner: User, other_user: User, trip: Trip
    ):
        make_marker(db_session, trip, owner, "Fushimi Inari")
        token = client.post(
            f"/api/trips/{trip.id}/invitation-token", headers=auth_header(owner)
        ).json()["token"]

        preview = client.get(f"/api/trips/preview/{token}", headers=auth_header(other_user))
        assert preview.status_code == 200
        assert preview.json()["is_collaborator"] is False
        assert [m["name"] for m in preview.json()["markers"]] == ["Fushimi Inari"]

        joined = client.post(f"/api/trips/join/{token}", headers=auth_header(other_user))
        assert joined.status_code == 200
        assert joined.json()["trip"]["id"] == trip.id

        assert client.get(f"/api/trips/{trip.id}", headers=auth_header(other_user)).status_code == 200

    @pytest.mark.parametrize("who", ["owner", "collaborator"])
    def test_join_rejected_for_existing_members(
        self, who, client: TestClient, db_session: Session, owner: User, other_user: User, trip: Trip
    ):
        share_trip(db_session, trip, other_user)
        token = client.post(
            f"/api/trips/{trip.id}/invitation-token", headers=auth_header(owner)
        ).json()["token"]
        user = owner if who == "owner" else other_user

        response = client.post(f"/api/trips/join/{token}", headers=auth_header(user))

        assert response.status_code == 400
