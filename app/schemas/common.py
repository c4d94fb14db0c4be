"""
공통 응답 스키마 정의
에러 응답과 페이지네이션 형식을 제공합니다.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorDetail(BaseModel):
    """필드 단위 에러 정보"""

    field: str | None = Field(None, description="에러 관련 필드명")
    message: str = Field(..., description="에러 메시지")
    type: str = Field(..., description="에러 유형")


class ErrorResponse(BaseModel):
    """에러 응답 형식"""

    detail: str = Field(..., description="에러 메시지")
    errors: list[ErrorDetail] | dict[str, Any] | None = Field(None, description="상세 에러 정보")


class MessageResponse(BaseModel):
    message: str


class PaginatedResponse(BaseModel, Generic[T]):
    """페이지네이션 응답"""

    items: list[T]
    total: int = Field(..., description="전체 항목 수")
    page: int = Field(..., description="현재 페이지")
    size: int = Field(..., description="페이지 크기")
    total_pages: int = Field(..., description="전체 페이지 수")

    @classmethod
    def build(cls, items: list[T], total: int, page: int, size: int) -> "PaginatedResponse[T]":
        total_pages = (total + size - 1) // size if size > 0 else 0
        return cls(items=items, total=total, page=page, size=size, total_pages=total_pages)
