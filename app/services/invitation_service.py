"""
사용자 초대 서비스

상태: 대기 -> 수락(종료) 또는 대기 -> 만료(저장하지 않고 expires_at으로 판단)
"""

import logging
from datetime import timedelta

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import BusinessLogicError
from app.models import User, UserInvitation, UserRole, utcnow
from app.schemas.invitation_schemas import InvitationAccept, InvitationPage
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

INVALID_INVITATION_MESSAGE = "This invitation is no longer valid."


def _field_error(field: str, message: str, error_type: str) -> BusinessLogicError:
    return BusinessLogicError(message, errors=[{"field": field, "message": message, "type": error_type}])


def create_invitation(db: Session, inviter: User, email: str) -> UserInvitation:
    """이메일은 기존 사용자와 기존 초대 모두와 중복될 수 없음"""
    email = email.lower()

    if db.query(User).filter(User.email == email).first():
        raise _field_error("email", "The email has already been taken.", "unique")
    if db.query(UserInvitation).filter(UserInvitation.email == email).first():
        raise _field_error("email", "An invitation has already been sent to this email.", "unique")

    invitation = UserInvitation(
        email=email,
        token=UserInvitation.generate_token(),
        invited_by=inviter.id,
        role=UserRole.USER,
        expires_at=utcnow() + timedelta(days=settings.invitation_expire_days),
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    logger.info(f"초대 생성: invitation_id={invitation.id}, email={email}, invited_by={inviter.id}")
    return invitation


def invitation_url(invitation: UserInvitation) -> str:
    return f"{settings.frontend_url}/invitations/{invitation.token}"


def get_invitation_by_token(db: Session, token: str) -> UserInvitation:
    invitation = db.query(UserInvitation).filter(UserInvitation.token == token).first()
    if not invitation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invitation not found")
    return invitation


def build_invitation_page(invitation: UserInvitation) -> InvitationPage:
    """토큰 상태에 따른 페이지 props"""
    if invitation.is_expired():
        return InvitationPage(component="auth/invitation-invalid", props={"reason": "expired"})
    if invitation.is_accepted():
        return InvitationPage(component="auth/invitation-invalid", props={"reason": "already_accepted"})
    return InvitationPage(
        component="auth/register-invitation",
        props={"token": invitation.token, "email": invitation.email},
    )


def accept_invitation(db: Session, invitation: UserInvitation, payload: InvitationAccept) -> User:
    """검증된 사용자 생성 후 초대를 수락 처리 (한 트랜잭션)"""
    if payload.email.lower() != invitation.email.lower():
        raise _field_error("email", "The email must match the invitation email.", "match")

    service = UserService(db)
    try:
        user = service.create_user(
            name=payload.name,
            email=invitation.email,
            password=payload.password,
            role=invitation.role,
            verified=True,
            commit=False,
        )
        invitation.accepted_at = utcnow()
        db.commit()
    except ValueError as e:
        db.rollback()
        raise _field_error("email", str(e), "value_error") from e
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info(f"초대 수락: invitation_id={invitation.id}, user_id={user.id}")
    return user


def delete_invitation(db: Session, invitation_id: int) -> None:
    invitation = db.query(UserInvitation).filter(UserInvitation.id == invitation_id).first()
    if not invitation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invitation not found")
    db.delete(invitation)
    db.commit()
    logger.info(f"초대 삭제: invitation_id={invitation_id}")
