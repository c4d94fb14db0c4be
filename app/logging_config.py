"""
로깅 설정 모듈

- 콘솔: INFO 이상
- {prefix}_YYYYMMDD.log: 전체 애플리케이션 로그 (용량 기준 회전)
- {prefix}_error.log: ERROR 이상, 호출 위치 포함
"""
import logging
import logging.handlers
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ERROR_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(pathname)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_LOG_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5

# 외부 라이브러리 로그 레벨
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "watchfiles": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "passlib": logging.ERROR,
}


def _rotating_handler(path: Path, level: int, fmt: str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, DATE_FORMAT))
    return handler


def setup_logging(log_dir: str = "logs", log_level: str = "INFO", file_prefix: str = "trip_map") -> Path:
    """
    애플리케이션 로깅 설정

    Args:
        log_dir: 로그 파일이 저장될 디렉토리 (없으면 생성)
        log_level: 루트 로거 레벨
        file_prefix: 로그 파일 이름 접두사

    Returns:
        로그 디렉토리 경로
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # 재호출 시 핸들러 중복 방지
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(console_handler)

    app_log = log_path / f"{file_prefix}_{datetime.now().strftime('%Y%m%d')}.log"
    root_logger.addHandler(_rotating_handler(app_log, logging.DEBUG, LOG_FORMAT))
    root_logger.addHandler(
        _rotating_handler(log_path / f"{file_prefix}_error.log", logging.ERROR, ERROR_LOG_FORMAT)
    )

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logging.info(f"로깅 초기화: dir={log_path.absolute()}, level={log_level}, file={app_log.name}")
    return log_path
