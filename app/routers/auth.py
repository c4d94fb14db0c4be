from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..auth.utils import create_refresh_token, create_user_token, verify_password, verify_token
from ..database import get_db
from ..models import User
from ..schemas.auth_schemas import (
    LoginResponse,
    RefreshTokenRequest,
    Token,
    UserLogin,
    UserResponse,
)
from ..services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    user_login: UserLogin,
    db: Session = Depends(get_db)
):
    """로그인 (JSON 요청)"""
    service = UserService(db)
    user = service.get_user_by_email(user_login.email)

    if not user or not verify_password(user_login.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="These credentials do not match our records.",
        )

    # 마지막 로그인 시간 업데이트
    service.record_login(user)

    access_token = create_user_token(user.id, user.email)
    refresh_token = create_refresh_token(user.id, user.email)

    return LoginResponse(
        user=UserResponse.model_validate(user),
        token=Token(access_token=access_token, refresh_token=refresh_token),
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
):
    """현재 사용자 프로필 조회"""
    return UserResponse.model_validate(current_user)


@router.post("/refresh", response_model=Token)
async def refresh_token(
    request: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """리프레시 토큰으로 새로운 액세스 토큰 발급"""
    payload = verify_token(request.refresh_token)
    if not payload or payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    user = UserService(db).get_user_by_id(int(payload.get("sub")))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    return Token(access_token=create_user_token(user.id, user.email))


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    """로그아웃 (클라이언트에서 토큰 삭제)"""
    return {"message": "Logged out"}


# OAuth2 호환 로그인 엔드포인트 (Swagger UI 지원)
@router.post("/token", response_model=Token)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)
):
    """OAuth2 호환 로그인 (Swagger UI용)"""
    service = UserService(db)
    user = service.get_user_by_email(form_data.username)

    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="These credentials do not match our records.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    service.record_login(user)

    return Token(access_token=create_user_token(user.id, user.email))
