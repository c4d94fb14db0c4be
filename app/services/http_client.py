"""외부 API 호출용 httpx 클라이언트 의존성"""

from collections.abc import Iterator

import httpx

from app.config import settings


def get_http_client() -> Iterator[httpx.Client]:
    client = httpx.Client(timeout=settings.routing_timeout_seconds)
    try:
        yield client
    finally:
        client.close()
