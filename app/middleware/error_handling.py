"""
통합 에러 처리 미들웨어
라우터의 예외 핸들러가 처리하지 못한 데이터베이스 오류와 예상치 못한 오류를 처리
"""
import logging
import traceback
import uuid
from typing import Callable

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """요청 ID를 붙여 오류를 로깅하고 500 응답으로 변환"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # 요청 ID 생성 (추적용)
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        except SQLAlchemyError as exc:
            return await self._handle_database_error(request, exc, request_id)

        except Exception as exc:
            return await self._handle_unexpected_error(request, exc, request_id)

    async def _handle_database_error(
        self, request: Request, exc: SQLAlchemyError, request_id: str
    ) -> JSONResponse:
        """데이터베이스 오류 처리"""
        logger.error(
            f"Database Error [{request_id}] {request.method} {request.url.path}: "
            f"{type(exc).__name__} - {exc}"
        )

        content = {
            "detail": "A database error occurred while processing the request.",
            "request_id": request_id,
        }
        if settings.debug:
            content["error_type"] = type(exc).__name__

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
        )

    async def _handle_unexpected_error(
        self, request: Request, exc: Exception, request_id: str
    ) -> JSONResponse:
        """예상치 못한 오류 처리 (스택 트레이스 로깅)"""
        error_details = {
            "error_type": type(exc).__name__,
            "error_message": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "client_host": request.client.host if request.client else "unknown",
        }

        logger.critical(
            f"Unexpected Error [{request_id}]: {error_details}\n{traceback.format_exc()}"
        )

        content = {
            "detail": "Internal server error.",
            "request_id": request_id,
        }
        if settings.debug:
            content["error_type"] = error_details["error_type"]

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
        )
