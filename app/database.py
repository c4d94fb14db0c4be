from sqlalchemy import create_engine, event, text
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker

from app.config import settings

SQLALCHEMY_DATABASE_URL = settings.database_url


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite는 연결마다 외래 키 제약을 켜야 ON DELETE CASCADE가 동작함"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    # 로컬 개발용 SQLite
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        echo=settings.debug,
    )

    event.listen(engine, "connect", enable_sqlite_foreign_keys)
else:
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        pool_size=10,
        max_overflow=15,
        pool_timeout=60,
        pool_pre_ping=True,  # 연결 상태 확인 활성화
        pool_recycle=1800,  # 30분마다 연결 재생성
        echo=settings.debug,  # 디버그 모드에서 SQL 로그 출력
        connect_args={
            "connect_timeout": 30,
            "application_name": "trip_map",
        },
    )

# 세션 팩토리 생성
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base 클래스
Base = declarative_base()


# 데이터베이스 의존성
def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# 헬스체크용 데이터베이스 연결 함수
def check_db_connection():
    """데이터베이스 연결 상태 확인"""
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1")).fetchone()
        db.close()
        return True, "Database connection successful"
    except Exception as e:
        return False, f"Database connection failed: {str(e)}"
