"""
도메인 예외 정의
라우터에서 발생시키고 main.py의 예외 핸들러가 JSON 응답으로 변환합니다.
"""

from typing import Any


class BusinessLogicError(Exception):
    """비즈니스 규칙 위반 (기본 422)"""

    def __init__(
        self,
        message: str,
        status_code: int = 422,
        errors: dict[str, Any] | list[Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors


class RoutingError(Exception):
    """외부 경로 제공자 오류의 공통 부모"""

    status_code = 503
    error_type = "routing_error"
    default_message = "Failed to calculate route"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class RouteNotFoundError(RoutingError):
    """두 마커 사이에 경로가 없음"""

    status_code = 404
    error_type = "route_not_found"
    default_message = "No route found between the markers"


class RoutingProviderError(RoutingError):
    """제공자 호출 실패 또는 설정 누락"""

    status_code = 503
    error_type = "routing_provider_error"
    default_message = "Failed to calculate route"


class MapboxQuotaExceededError(RoutingError):
    """월간 Mapbox 요청 한도 초과"""

    status_code = 429
    error_type = "mapbox_quota_exceeded"
    default_message = "Mapbox API quota exceeded"
