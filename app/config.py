"""Trip map application configuration settings."""

import os

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env 파일 로드
from dotenv import load_dotenv
load_dotenv()


class Settings(BaseSettings):
    """Trip map application settings configuration."""

    # 기본 설정
    app_name: str = "Trip Map API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # 서버 설정
    host: str = "127.0.0.1"
    port: int = 8000

    # 로깅 설정
    log_dir: str = "logs"
    log_level: str = ""  # 비어 있으면 debug 여부로 결정
    log_file_prefix: str = "trip_map"

    # CORS 설정
    cors_origins: list[str] = ["*"]

    # JWT 설정
    secret_key: str = os.getenv("JWT_SECRET_KEY", "")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24시간
    refresh_token_expire_minutes: int = 43200  # 30일

    # 데이터베이스 설정
    database_url: str = os.getenv("DATABASE_URL", "")

    # 이메일 설정
    mail_username: str = os.getenv("MAIL_USERNAME", "")
    mail_password: str = os.getenv("MAIL_PASSWORD", "")
    mail_from: str = os.getenv("MAIL_FROM", "noreply@tripmap.app")
    mail_port: int = int(os.getenv("MAIL_PORT", "587"))
    mail_server: str = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    mail_starttls: bool = os.getenv("MAIL_STARTTLS", "true").lower() == "true"
    mail_ssl_tls: bool = os.getenv("MAIL_SSL_TLS", "false").lower() == "true"
    mail_from_name: str = os.getenv("MAIL_FROM_NAME", "Trip Map")

    # 외부 API 설정
    mapbox_access_token: str = os.getenv("MAPBOX_ACCESS_TOKEN", "")
    mapbox_api_url: str = "https://api.mapbox.com"
    mapbox_monthly_request_limit: int = int(os.getenv("MAPBOX_MONTHLY_REQUEST_LIMIT", "10000"))
    mapbox_static_style: str = os.getenv("MAPBOX_STATIC_STYLE", "mapbox/streets-v12")

    google_maps_api_key: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
    google_routes_url: str = "https://routes.googleapis.com/directions/v2:computeRoutes"

    routing_timeout_seconds: float = float(os.getenv("ROUTING_TIMEOUT_SECONDS", "30"))

    # 초대 설정
    invitation_expire_days: int = int(os.getenv("INVITATION_EXPIRE_DAYS", "7"))

    # 초기 관리자 계정 (init_db.py, manage_users.py)
    admin_email: str = os.getenv("ADMIN_EMAIL", "")
    admin_password: str = os.getenv("ADMIN_PASSWORD", "")
    admin_name: str = os.getenv("ADMIN_NAME", "Administrator")

    # 프론트엔드 설정
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    @field_validator("secret_key")
    @classmethod
    def secret_key_must_be_set(cls, v: str) -> str:
        """Validate that secret key is set."""
        if not v:
            raise ValueError("JWT_SECRET_KEY must be set")
        return v

    @field_validator("database_url")
    @classmethod
    def database_url_must_be_set(cls, v: str) -> str:
        """Validate that database URL is set."""
        if not v:
            raise ValueError("DATABASE_URL must be set")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as list."""
        if self.is_production:
            return [self.frontend_url]
        return self.cors_origins

    @property
    def login_url(self) -> str:
        return f"{self.frontend_url}/login"

    @property
    def dashboard_url(self) -> str:
        return f"{self.frontend_url}/dashboard"

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # 추가 필드 무시


# 설정 인스턴스 생성
settings = Settings()
