"""
Mapbox 월간 요청 한도 관리
기간(YYYY-MM)별 요청 수를 한 행에 누적합니다.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import MapboxQuotaExceededError
from app.models import MapboxRequest, utcnow

logger = logging.getLogger(__name__)


class MapboxRequestLimiter:
    def __init__(self, db: Session, monthly_limit: int | None = None):
        self.db = db
        self.monthly_limit = (
            monthly_limit if monthly_limit is not None else settings.mapbox_monthly_request_limit
        )

    @staticmethod
    def current_period(now: datetime | None = None) -> str:
        return (now or utcnow()).strftime("%Y-%m")

    def _get_or_create_record(self, period: str) -> MapboxRequest:
        record = self.db.query(MapboxRequest).filter(MapboxRequest.period == period).first()
        if record is None:
            record = MapboxRequest(period=period, count=0)
            self.db.add(record)
            self.db.flush()
        return record

    def check_quota(self) -> None:
        """한도 도달 시 MapboxQuotaExceededError"""
        period = self.current_period()
        record = self._get_or_create_record(period)

        if record.count >= self.monthly_limit:
            logger.warning(
                f"Mapbox 월간 한도 초과: period={period}, count={record.count}, limit={self.monthly_limit}"
            )
            raise MapboxQuotaExceededError(
                f"Mapbox API monthly quota exceeded ({record.count}/{self.monthly_limit} requests). "
                "Please try again next month."
            )

    def increment_count(self) -> None:
        """Mapbox 호출 후 요청 수 증가 (즉시 커밋)"""
        period = self.current_period()
        try:
            record = self._get_or_create_record(period)
            record.count = MapboxRequest.count + 1
            record.last_request_at = utcnow()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def get_usage_stats(self) -> dict:
        period = self.current_period()
        record = self._get_or_create_record(period)
        self.db.commit()
        return {
            "period": period,
            "count": record.count,
            "limit": self.monthly_limit,
            "remaining": max(0, self.monthly_limit - record.count),
        }
