"""
사용자 초대 API

- 관리자: 목록, 생성(메일 발송), 삭제
- 공개: 토큰 조회, 수락(가입)
"""
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session, joinedload

from app.auth.dependencies import require_admin
from app.auth.utils import create_refresh_token, create_user_token
from app.config import settings
from app.database import get_db
from app.models import User, UserInvitation
from app.schemas.auth_schemas import Token, UserResponse
from app.schemas.common import PaginatedResponse
from app.schemas.invitation_schemas import (
    InvitationAccept,
    InvitationAcceptResponse,
    InvitationCreate,
    InvitationPage,
    InvitationResponse,
)
from app.services import invitation_service
from app.services.email_service import email_service

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/admin/invitations", tags=["Invitations"])
public_router = APIRouter(prefix="/invitations", tags=["Invitations"])


@admin_router.get("", response_model=PaginatedResponse[InvitationResponse])
def list_invitations(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """초대 목록 (최신순)"""
    query = db.query(UserInvitation)
    total = query.count()
    invitations = (
        query.options(joinedload(UserInvitation.inviter))
        .order_by(UserInvitation.created_at.desc(), UserInvitation.id.desc())
        .offset((page - 1) * size)
        .limit(size)
        .all()
    )
    return PaginatedResponse[InvitationResponse].build(
        items=[InvitationResponse.model_validate(i) for i in invitations],
        total=total,
        page=page,
        size=size,
    )


@admin_router.post("", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
async def create_invitation(
    payload: InvitationCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """초대 생성 후 메일 발송 (발송 실패는 로그만 남김)"""
    invitation = invitation_service.create_invitation(db, current_user, payload.email)

    sent = await email_service.send_user_invitation_email(
        email=invitation.email,
        invitation_url=invitation_service.invitation_url(invitation),
        expires_at=invitation.expires_at.strftime("%Y-%m-%d %H:%M UTC"),
        inviter_name=current_user.name,
    )
    if not sent:
        logger.warning(f"초대 메일 미발송: invitation_id={invitation.id}")

    return InvitationResponse.model_validate(invitation)


@admin_router.delete("/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invitation(
    invitation_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    invitation_service.delete_invitation(db, invitation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@public_router.get("/{token}", response_model=InvitationPage)
def show_invitation(token: str, db: Session = Depends(get_db)):
    invitation = invitation_service.get_invitation_by_token(db, token)
    return invitation_service.build_invitation_page(invitation)


@public_router.post(
    "/{token}/accept",
    response_model=InvitationAcceptResponse,
    status_code=status.HTTP_201_CREATED,
    responses={303: {"description": "유효하지 않은 초대, 로그인 페이지로 이동"}},
)
async def accept_invitation(token: str, request: Request, db: Session = Depends(get_db)):
    """초대 수락 후 가입, 유효성 검사보다 초대 상태 확인이 먼저"""
    invitation = invitation_service.get_invitation_by_token(db, token)

    if not invitation.is_valid():
        query = urlencode({"error": invitation_service.INVALID_INVITATION_MESSAGE})
        return RedirectResponse(
            url=f"{settings.login_url}?{query}", status_code=status.HTTP_303_SEE_OTHER
        )

    try:
        body = await request.json()
    except ValueError:
        body = {}

    try:
        payload = InvitationAccept.model_validate(body)
    except ValidationError as e:
        raise RequestValidationError(
            [{**err, "loc": ("body", *err["loc"])} for err in e.errors()]
        ) from e

    user = invitation_service.accept_invitation(db, invitation, payload)

    return InvitationAcceptResponse(
        user=UserResponse.model_validate(user),
        token=Token(
            access_token=create_user_token(user.id, user.email),
            refresh_token=create_refresh_token(user.id, user.email),
        ),
    )
