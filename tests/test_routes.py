"""
경로 API 테스트 (외부 제공자는 MockTransport로 대체)
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.config import settings
from app.models import MapboxRequest, Route, Trip, TransportMode, User
from app.services.mapbox_limiter import MapboxRequestLimiter
from conftest import auth_header, make_marker, make_tour, make_trip, share_trip

SAMPLE_POLYLINE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


def mapbox_directions(distance: float = 1234.5, duration: float = 900.2) -> dict:
    return {
        "code": "Ok",
        "routes": [{
            "distance": distance,
            "duration": duration,
            "geometry": {"type": "LineString", "coordinates": [[135.0, 35.0], [135.01, 35.01]]},
        }],
    }


def google_transit() -> dict:
    leg = {
        "steps": [
            {"travelMode": "WALK", "distanceMeters": 300, "staticDuration": "240s"},
            {
                "travelMode": "TRANSIT",
                "distanceMeters": 8000,
                "staticDuration": "900s",
                "transitDetails": {
                    "stopDetails": {
                        "departureStop": {"name": "Kyoto Station"},
                        "arrivalStop": {"name": "Inari"},
                        "departureTime": "2026-10-19T09:00:00Z",
                        "arrivalTime": "2026-10-19T09:15:00Z",
                    },
                    "transitLine": {
                        "name": "JR Nara Line",
                        "nameShort": "JR-D",
                        "color": "#aa7722",
                        "vehicle": {"name": {"text": "Train"}},
                    },
                    "stopCount": 2,
                    "headsign": "Nara",
                },
            },
        ],
        "localizedValues": {
            "departure": {"time": {"text": "9:00 AM"}},
            "arrival": {"time": {"text": "9:19 AM"}},
        },
    }
    return {
        "routes": [
            {
                "distanceMeters": 8300,
                "duration": "1140s",
                "polyline": {"encodedPolyline": SAMPLE_POLYLINE},
                "legs": [leg],
            },
            {
                "distanceMeters": 9100,
                "duration": "1500s",
                "polyline": {"encodedPolyline": SAMPLE_POLYLINE},
                "legs": [{"steps": [{"travelMode": "TRANSIT"}, {"travelMode": "TRANSIT"}]}],
            },
        ]
    }


@pytest.fixture
def markers(db_session: Session, owner: User, trip: Trip):
    start = make_marker(db_session, trip, owner, "Kyoto Station", 34.9858, 135.7588)
    end = make_marker(db_session, trip, owner, "Fushimi Inari", 34.9671, 135.7727)
    return start, end


def route_payload(trip: Trip, start, end, mode: str = "foot-walking", **extra) -> dict:
    payload = {
        "trip_id": trip.id,
        "start_marker_id": start.id,
        "end_marker_id": end.id,
        "transport_mode": mode,
    }
    payload.update(extra)
    return payload


class TestCreateRoute:
    """경로 생성"""

    def test_mapbox_walking_route(
        self, client: TestClient, db_session: Session, owner: User, trip: Trip, markers,
        mapbox_handler, mock_settings,
    ):
        start, end = markers
        mapbox_handler.handlers.append(lambda request: httpx.Response(200, json=mapbox_directions()))

        response = client.post("/api/routes", json=route_payload(trip, start, end), headers=auth_header(owner))

        assert response.status_code == 201
        data = response.json()
        assert data["distance"] == 1234
        assert data["distance_km"] == 1.23
        assert data["duration"] == 900
        assert data["duration_minutes"] == 15
        assert data["transport_mode"] == "foot-walking"
        assert data["transport_mode_label"] == "Walking"
        assert data["start_marker"] == {"id": start.id, "name": "Kyoto Station", "lat": 34.9858, "lng": 135.7588}
        assert data["geometry"] == [[135.0, 35.0], [135.01, 35.01]]
        assert data["warning"] is None

        request = mapbox_handler.requests[0]
        assert request.url.path == "/directions/v5/mapbox/walking/135.7588,34.9858;135.7727,34.9671"
        assert request.url.params["geometries"] == "geojson"
        assert db_session.query(MapboxRequest).one().count == 1

    @pytest.mark.parametrize(
        "mode, profile",
        [("driving-car", "driving-traffic"), ("cycling-regular", "cycling")],
    )
    def test_mapbox_profiles(
        self, mode, profile, client: TestClient, owner: User, trip: Trip, markers, mapbox_handler, mock_settings
    ):
        start, end = markers
        mapbox_handler.handlers.append(lambda request: httpx.Response(200, json=mapbox_directions()))

        response = client.post("/api/routes", json=route_payload(trip, start, end, mode), headers=auth_header(owner))

        assert response.status_code == 201
        assert f"/mapbox/{profile}/" in mapbox_handler.requests[0].url.path

    def test_long_walk_warning(
        self, client: TestClient, owner: User, trip: Trip, markers, mapbox_handler, mock_settings
    ):
        start, end = markers
        mapbox_handler.handlers.append(
            lambda request: httpx.Response(200, json=mapbox_directions(distance=42000, duration=36000))
        )

        response = client.post("/api/routes", json=route_payload(trip, start, end), headers=auth_header(owner))

        assert "long walking route (42 km)" in response.json()["warning"]

    def test_public_transport_route(
        self, client: TestClient, owner: User, trip: Trip, markers, mapbox_handler, mock_settings
    ):
        start, end = markers
        mapbox_handler.handlers.append(lambda request: httpx.Response(200, json=google_transit()))

        response = client.post(
            "/api/routes", json=route_payload(trip, start, end, "public-transport"), headers=auth_header(owner)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["distance"] == 8300
        assert data["duration"] == 1140
        assert data["geometry"][0] == [-120.2, 38.5]
        details = data["transit_details"]
        assert details["departure_time"] == "9:00 AM"
        assert details["steps"][1]["transit"]["line"]["short_name"] == "JR-D"
        assert details["steps"][1]["transit"]["departure_stop"]["name"] == "Kyoto Station"
        assert data["alternatives"] == [{"distance": 9100, "duration": 1500, "num_transfers": 1}]

        request = mapbox_handler.requests[0]
        assert request.method == "POST"
        assert request.headers["X-Goog-Api-Key"] == "google-test-key"
        body = json.loads(request.content)
        assert body["travelMode"] == "TRANSIT"
        assert body["origin"]["location"]["latLng"] == {"latitude": 34.9858, "longitude": 135.7588}

    def test_same_start_and_end(self, client: TestClient, owner: User, trip: Trip, markers):
        start, _ = markers

        response = client.post("/api/routes", json=route_payload(trip, start, start), headers=auth_header(owner))

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "end_marker_id"
        assert response.json()["detail"] == "The end marker must be different from the start marker"

    def test_unknown_transport_mode(self, client: TestClient, owner: User, trip: Trip, markers):
        start, end = markers

        response = client.post(
            "/api/routes", json=route_payload(trip, start, end, "teleport"), headers=auth_header(owner)
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "transport_mode"

    def test_unknown_marker(self, client: TestClient, owner: User, trip: Trip, markers):
        start, _ = markers

        response = client.post(
            "/api/routes",
            json={"trip_id": trip.id, "start_marker_id": start.id, "end_marker_id": "missing", "transport_mode": "foot-walking"},
            headers=auth_header(owner),
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "end_marker_id"

    def test_markers_from_other_trip(
        self, client: TestClient, db_session: Session, owner: User, trip: Trip, markers
    ):
        start, _ = markers
        foreign = make_marker(db_session, make_trip(db_session, owner, "Other"), owner)

        response = client.post("/api/routes", json=route_payload(trip, start, foreign), headers=auth_header(owner))

        assert response.status_code == 422
        assert response.json()["detail"] == "Markers must belong to the same trip"

    def test_tour_from_other_trip(
        self, client: TestClient, db_session: Session, owner: User, trip: Trip, markers
    ):
        start, end = markers
        foreign_tour = make_tour(db_session, make_trip(db_session, owner, "Other"))

        response = client.post(
            "/api/routes", json=route_payload(trip, start, end, tour_id=foreign_tour.id), headers=auth_header(owner)
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "tour_id"

    def test_stranger_forbidden(self, client: TestClient, other_user: User, trip: Trip, markers):
        start, end = markers

        response = client.post("/api/routes", json=route_payload(trip, start, end), headers=auth_header(other_user))

        assert response.status_code == 403


class TestRoutingErrors:
    """제공자 오류 응답 매핑"""

    def test_no_route_found(
        self, client: TestClient, db_session: Session, owner: User, trip: Trip, markers,
        mapbox_handler, mock_settings,
    ):
        start, end = markers
        mapbox_handler.handlers.append(lambda request: httpx.Response(200, json={"code": "NoRoute", "routes": []}))

        response = client.post("/api/routes", json=route_payload(trip, start, end), headers=auth_header(owner))

        assert response.status_code == 404
        assert response.json() == {"detail": "No route found between the markers", "type": "route_not_found"}
        assert db_session.query(Route).count() == 0

    def test_no_transit_route_found(
        self, client: TestClient, owner: User, trip: Trip, markers, mapbox_handler, mock_settings
    ):
        start, end = markers
        mapbox_handler.handlers.append(lambda request: httpx.Response(200, json={}))

        response = client.post(
            "/api/routes", json=route_payload(trip, start, end, "public-transport"), headers=auth_header(owner)
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "No public transport route found between the markers"

    def test_provider_error(
        self, client: TestClient, db_session: Session, owner: User, trip: Trip, markers,
        mapbox_handler, mock_settings,
    ):
        start, end = markers
        mapbox_handler.handlers.append(lambda request: httpx.Response(422, json={"message": "Invalid coordinates"}))

        response = client.post("/api/routes", json=route_payload(trip, start, end), headers=auth_header(owner))

        assert response.status_code == 503
        assert response.json()["type"] == "routing_provider_error"
        # 실패한 호출도 사용량에 포함
        assert db_session.query(MapboxRequest).one().count == 1

    def test_network_error(
        self, client: TestClient, owner: User, trip: Trip, markers, mapbox_handler, mock_settings
    ):
        start, end = markers

        def raise_connect_error(request):
            raise httpx.ConnectError("connection refused", request=request)

        mapbox_handler.handlers.append(raise_connect_error)

        response = client.post("/api/routes", json=route_payload(trip, start, end), headers=auth_header(owner))

        assert response.status_code == 503

    def test_missing_mapbox_token(
        self, client: TestClient, owner: User, trip: Trip, markers, mapbox_handler, monkeypatch
    ):
        start, end = markers
        monkeypatch.setattr(settings, "mapbox_access_token", "")

        response = client.post("/api/routes", json=route_payload(trip, start, end), headers=auth_header(owner))

        assert response.status_code == 503
        assert "MAPBOX_ACCESS_TOKEN" in response.json()["detail"]
        assert mapbox_handler.requests == []

    def test_missing_google_key(
        self, client: TestClient, owner: User, trip: Trip, markers, monkeypatch
    ):
        start, end = markers
        monkeypatch.setattr(settings, "google_maps_api_key", "")

        response = client.post(
            "/api/routes", json=route_payload(trip, start, end, "public-transport"), headers=auth_header(owner)
        )

        assert response.status_code == 503

    def test_quota_exceeded(
        self, client: TestClient, db_session: Session, owner: User, trip: Trip, markers,
        mapbox_handler, mock_settings,
    ):
        start, end = markers
        db_session.add(MapboxRequest(period=MapboxRequestLimiter.current_period(), count=10000))
        db_session.commit()

        response = client.post("/api/routes", json=route_payload(trip, start, end), headers=auth_header(owner))

        assert response.status_code == 429
        assert response.json()["type"] == "mapbox_quota_exceeded"
        assert "10000/10000" in response.json()["detail"]
        assert mapbox_handler.requests == []


class TestRouteReadDelete:
    """경로 조회/삭제"""

    def _store(self, db: Session, trip: Trip, start, end, distance: int = 1000) -> Route:
        route = Route(
            trip_id=trip.id,
            start_marker_id=start.id,
            end_marker_id=end.id,
            transport_mode=TransportMode.DRIVING_CAR,
            distance=distance,
            duration=120,
            geometry=[[135.0, 35.0], [135.1, 35.1]],
        )
        db.add(route)
        db.commit()
        db.refresh(route)
        return route

    def test_list_newest_first(self, client: TestClient, db_session: Session, owner: User, trip: Trip, markers):
        start, end = markers
        older = self._store(db_session, trip, start, end)
        newer = self._store(db_session, trip, end, start)

        response = client.get(f"/api/routes?trip_id={trip.id}", headers=auth_header(owner))

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [newer.id, older.id]

    def test_show_for_collaborator(
        self, client: TestClient, db_session: Session, other_user: User, trip: Trip, markers
    ):
        route = self._store(db_session, trip, *markers)
        share_trip(db_session, trip, other_user)

        response = client.get(f"/api/routes/{route.id}", headers=auth_header(other_user))

        assert response.status_code == 200
        assert response.json()["transport_mode_label"] == "Car"

    def test_show_forbidden_for_stranger(
        self, client: TestClient, db_session: Session, other_user: User, trip: Trip, markers
    ):
        route = self._store(db_session, trip, *markers)

        assert client.get(f"/api/routes/{route.id}", headers=auth_header(other_user)).status_code == 403

    def test_delete(self, client: TestClient, db_session: Session, owner: User, trip: Trip, markers):
        route = self._store(db_session, trip, *markers)

        response = client.delete(f"/api/routes/{route.id}", headers=auth_header(owner))

        assert response.status_code == 204
        assert db_session.query(Route).count() == 0

    def test_deleting_marker_removes_routes(
        self, client: TestClient, db_session: Session, owner: User, trip: Trip, markers
    ):
        start, end = markers
        self._store(db_session, trip, start, end)

        response = client.delete(f"/api/markers/{start.id}", headers=auth_header(owner))

        assert response.status_code == 204
        db_session.expire_all()
        assert db_session.query(Route).count() == 0

        listing = client.get(f"/api/routes?trip_id={trip.id}", headers=auth_header(owner))
        assert listing.status_code == 200
        assert listing.json() == []

    def test_missing_route(self, client: TestClient, owner: User):
        assert client.get("/api/routes/999", headers=auth_header(owner)).status_code == 404
