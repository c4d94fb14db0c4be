import logging

from sqlalchemy.orm import Session

from app.database import Base, SessionLocal, engine
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


def create_tables():
    """데이터베이스 테이블 생성 (이미 있는 테이블은 유지)"""
    import app.models  # noqa: F401  모델을 메타데이터에 등록

    Base.metadata.create_all(bind=engine)
    logger.info("데이터베이스 테이블 확인 완료")


def create_initial_admin(email: str, password: str, name: str) -> bool:
    """
    초기 관리자 계정 생성

    ADMIN_EMAIL / ADMIN_PASSWORD가 비어 있으면 건너뜁니다.
    이미 있는 계정이면 관리자로 승격합니다.
    """
    if not email or not password:
        logger.warning("ADMIN_EMAIL 또는 ADMIN_PASSWORD가 없어 관리자 생성을 건너뜁니다.")
        return False

    db: Session = SessionLocal()
    try:
        user, created = UserService(db).create_or_promote_admin(name, email, password)
        if created:
            logger.info(f"관리자 계정 생성: {user.email} (id={user.id})")
        else:
            logger.info(f"기존 계정을 관리자로 설정: {user.email} (id={user.id})")
        return True
    finally:
        db.close()


def init_database():
    """데이터베이스 초기화"""
    from app.config import settings

    logger.info("데이터베이스 초기화를 시작합니다...")
    create_tables()
    create_initial_admin(settings.admin_email, settings.admin_password, settings.admin_name)
    logger.info("데이터베이스 초기화 완료")
