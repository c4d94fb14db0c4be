import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.orm import Session

from ..auth.utils import get_password_hash
from ..models import User, UserRole, utcnow

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def normalize_email(email: str) -> str:
    """이메일 형식 검증 후 소문자로 반환 (잘못된 형식이면 ValueError)"""
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"Invalid email address: {email}") from e
    return email.strip().lower()


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class UserService:
    """사용자 계정 관리 서비스"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_id(self, user_id: int) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
        verified: bool = False,
        commit: bool = True,
    ) -> User:
        """새 사용자 생성"""
        email = normalize_email(email)
        validate_password(password)

        if self.get_user_by_email(email):
            raise ValueError("The email has already been taken.")

        user = User(
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            role=role,
            email_verified_at=utcnow() if verified else None,
        )
        self.db.add(user)

        if commit:
            try:
                self.db.commit()
            except Exception as e:
                logger.error(f"사용자 생성 실패: {e}")
                self.db.rollback()
                raise
            self.db.refresh(user)
            logger.info(f"새 사용자 생성 완료: {user.email}")
        else:
            self.db.flush()

        return user

    def create_or_promote_admin(self, name: str, email: str, password: str) -> tuple[User, bool]:
        """
        관리자 계정 생성

        이미 존재하는 이메일이면 관리자로 승격하고 비밀번호를 갱신합니다.
        반환값의 두 번째 항목은 새로 생성했는지 여부입니다.
        """
        email = normalize_email(email)
        validate_password(password)

        user = self.get_user_by_email(email)
        if user is None:
            return self.create_user(name, email, password, role=UserRole.ADMIN, verified=True), True

        user.role = UserRole.ADMIN
        user.password_hash = get_password_hash(password)
        if user.email_verified_at is None:
            user.email_verified_at = utcnow()
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"기존 사용자를 관리자로 변경: {user.email}")
        return user, False

    def set_password(self, user: User, password: str) -> User:
        validate_password(password)
        user.password_hash = get_password_hash(password)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"비밀번호 변경 완료: user_id={user.id}")
        return user

    def record_login(self, user: User) -> None:
        user.last_login_at = utcnow()
        self.db.commit()
