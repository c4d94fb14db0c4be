#!/usr/bin/env python3
"""
데이터베이스 초기화 스크립트

사용법:
    python init_db.py

이 스크립트는 다음 작업을 수행합니다:
1. 데이터베이스 테이블 생성
2. ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME 으로 관리자 계정 생성
"""

import sys

from app.config import settings
from app.init_data import init_database
from app.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging(log_dir=settings.log_dir, log_level="INFO", file_prefix=settings.log_file_prefix)

    print("=" * 50)
    print(f"{settings.app_name} - 데이터베이스 초기화")
    print("=" * 50)

    try:
        init_database()
    except Exception as e:
        print(f"\n❌ 초기화 실패: {e}")
        sys.exit(1)

    print("\n초기화 완료!")
    if settings.admin_email:
        print(f"관리자 계정: {settings.admin_email}")
    else:
        print("ADMIN_EMAIL이 설정되지 않아 관리자 계정은 만들지 않았습니다.")
    print("=" * 50)
