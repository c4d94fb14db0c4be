"""
사용자 초대 흐름 테스트
"""

from datetime import timedelta
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.config import settings
from app.models import User, UserInvitation, UserRole, utcnow
from conftest import auth_header, make_user


def make_invitation(db: Session, inviter: User, email: str = "guest@example.com", **kwargs) -> UserInvitation:
    values = {
        "email": email,
        "token": UserInvitation.generate_token(),
        "invited_by": inviter.id,
        "expires_at": utcnow() + timedelta(days=7),
    }
    values.update(kwargs)
    invitation = UserInvitation(**values)
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    return invitation


def accept_payload(email: str = "guest@example.com", **overrides) -> dict:
    payload = {
        "name": "Guest",
        "email": email,
        "password": "secret-pass",
        "password_confirmation": "secret-pass",
    }
    payload.update(overrides)
    return payload


class TestAdminInvitations:
    """관리자 초대 관리"""

    def test_create_invitation(self, client: TestClient, db_session: Session, admin: User):
        response = client.post(
            "/api/admin/invitations", json={"email": "Guest@Example.com"}, headers=auth_header(admin)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "guest@example.com"
        assert data["role"] == "user"
        assert data["invited_by"] == admin.id
        assert data["accepted_at"] is None

        invitation = db_session.query(UserInvitation).one()
        assert len(invitation.token) == 64
        assert invitation.token.isalnum()

    def test_requires_admin(self, client: TestClient, owner: User):
        response = client.post(
            "/api/admin/invitations", json={"email": "guest@example.com"}, headers=auth_header(owner)
        )

        assert response.status_code == 403
        assert client.get("/api/admin/invitations", headers=auth_header(owner)).status_code == 403

    def test_email_of_existing_user(self, client: TestClient, admin: User, owner: User):
        response = client.post(
            "/api/admin/invitations", json={"email": owner.email}, headers=auth_header(admin)
        )

        assert response.status_code == 422
        assert response.json()["errors"][0] == {
            "field": "email",
            "message": "The email has already been taken.",
            "type": "unique",
        }

    def test_email_already_invited(self, client: TestClient, db_session: Session, admin: User):
        make_invitation(db_session, admin)

        response = client.post(
            "/api/admin/invitations", json={"email": "guest@example.com"}, headers=auth_header(admin)
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "An invitation has already been sent to this email."

    def test_list_paginated(self, client: TestClient, db_session: Session, admin: User):
        for i in range(3):
            make_invitation(db_session, admin, f"guest{i}@example.com")

        response = client.get("/api/admin/invitations?page=2&size=2", headers=auth_header(admin))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["total_pages"] == 2
        assert data["page"] == 2
        assert len(data["items"]) == 1
        assert data["items"][0]["inviter"]["name"] == "Admin"

    def test_delete(self, client: TestClient, db_session: Session, admin: User):
        invitation = make_invitation(db_session, admin)

        response = client.delete(f"/api/admin/invitations/{invitation.id}", headers=auth_header(admin))

        assert response.status_code == 204
        assert db_session.query(UserInvitation).count() == 0

    def test_delete_missing(self, client: TestClient, admin: User):
        assert client.delete("/api/admin/invitations/999", headers=auth_header(admin)).status_code == 404


class TestInvitationPage:
    """토큰 조회"""

    def test_pending_invitation(self, client: TestClient, db_session: Session, admin: User):
        invitation = make_invitation(db_session, admin)

        response = client.get(f"/api/invitations/{invitation.token}")

        assert response.status_code == 200
        assert response.json() == {
            "component": "auth/register-invitation",
            "props": {"token": invitation.token, "email": "guest@example.com"},
        }

    def test_expired_invitation(self, client: TestClient, db_session: Session, admin: User):
        invitation = make_invitation(db_session, admin, expires_at=utcnow() - timedelta(minutes=1))

        response = client.get(f"/api/invitations/{invitation.token}")

        assert response.json()["props"] == {"reason": "expired"}

    def test_expired_takes_precedence_over_accepted(self, client: TestClient, db_session: Session, admin: User):
        invitation = make_invitation(
            db_session, admin, expires_at=utcnow() - timedelta(days=1), accepted_at=utcnow() - timedelta(days=2)
        )

        response = client.get(f"/api/invitations/{invitation.token}")

        assert response.json()["props"] == {"reason": "expired"}

    def test_accepted_invitation(self, client: TestClient, db_session: Session, admin: User):
        invitation = make_invitation(db_session, admin, accepted_at=utcnow())

        response = client.get(f"/api/invitations/{invitation.token}")

        assert response.json() == {
            "component": "auth/invitation-invalid",
            "props": {"reason": "already_accepted"},
        }

    def test_unknown_token(self, client: TestClient):
        assert client.get("/api/invitations/unknown").status_code == 404


class TestAcceptInvitation:
    """초대 수락 및 가입"""

    def test_full_flow(self, client: TestClient, db_session: Session, admin: User):
        created = client.post(
            "/api/admin/invitations", json={"email": "guest@example.com"}, headers=auth_header(admin)
        )
        assert created.status_code == 201
        token = db_session.query(UserInvitation).one().token

        response = client.post(f"/api/invitations/{token}/accept", json=accept_payload())

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "guest@example.com"
        assert data["user"]["role"] == "user"

        user = db_session.query(User).filter(User.email == "guest@example.com").one()
        assert user.email_verified_at is not None
        assert user.role == UserRole.USER

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']['access_token']}"})
        assert me.status_code == 200

        db_session.expire_all()
        assert db_session.query(UserInvitation).one().accepted_at is not None

    def test_second_accept_redirects_to_login(self, client: TestClient, db_session: Session, admin: User):
        invitation = make_invitation(db_session, admin)
        client.post(f"/api/invitations/{invitation.token}/accept", json=accept_payload())

        response = client.post(
            f"/api/invitations/{invitation.token}/accept",
            json=accept_payload(),
            follow_redirects=False,
        )

        assert response.status_code == 303
        location = urlparse(response.headers["location"])
        assert f"{location.scheme}://{location.netloc}{location.path}" == settings.login_url
        assert parse_qs(location.query)["error"] == ["This invitation is no longer valid."]
        assert db_session.query(User).filter(User.email == "guest@example.com").count() == 1

    def test_expired_redirects_before_validation(self, client: TestClient, db_session: Session, admin: User):
        """만료된 초대는 본문이 잘못되어도 리다이렉트"""
        invitation = make_invitation(db_session, admin, expires_at=utcnow() - timedelta(hours=1))

        response = client.post(
            f"/api/invitations/{invitation.token}/accept", json={}, follow_redirects=False
        )

        assert response.status_code == 303

    def test_email_must_match(self, client: TestClient, db_session: Session, admin: User):
        invitation = make_invitation(db_session, admin)

        response = client.post(
            f"/api/invitations/{invitation.token}/accept", json=accept_payload(email="someone@example.com")
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["message"] == "The email must match the invitation email."
        assert db_session.query(User).filter(User.email == "someone@example.com").count() == 0

    def test_password_confirmation(self, client: TestClient, db_session: Session, admin: User):
        invitation = make_invitation(db_session, admin)

        response = client.post(
            f"/api/invitations/{invitation.token}/accept",
            json=accept_payload(password_confirmation="different-pass"),
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "password_confirmation"

    def test_short_password(self, client: TestClient, db_session: Session, admin: User):
        invitation = make_invitation(db_session, admin)

        response = client.post(
            f"/api/invitations/{invitation.token}/accept",
            json=accept_payload(password="short", password_confirmation="short"),
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "password"

    def test_email_taken_in_the_meantime(self, client: TestClient, db_session: Session, admin: User):
        invitation = make_invitation(db_session, admin)
        make_user(db_session, "guest@example.com")

        response = client.post(f"/api/invitations/{invitation.token}/accept", json=accept_payload())

        assert response.status_code == 422
        assert response.json()["errors"][0] == {
            "field": "email",
            "message": "The email has already been taken.",
            "type": "value_error",
        }
        db_session.expire_all()
        assert db_session.get(UserInvitation, invitation.id).accepted_at is None
