import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.core.exceptions import BusinessLogicError, RoutingError
from app.database import check_db_connection
from app.logging_config import setup_logging
from app.middleware import ErrorHandlingMiddleware
from app.routers.auth import router as auth_router
from app.routers.collaborators import router as collaborators_router
from app.routers.invitations import admin_router as admin_invitations_router
from app.routers.invitations import public_router as invitations_router
from app.routers.mapbox import router as mapbox_router
from app.routers.markers import router as markers_router
from app.routers.routes import router as routes_router
from app.routers.tours import router as tours_router
from app.routers.trips import router as trips_router

# 로깅 설정 초기화
setup_logging(
    log_dir=settings.log_dir,
    log_level=settings.log_level or ("DEBUG" if settings.debug else "INFO"),
    file_prefix=settings.log_file_prefix,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기 관리"""
    # Startup
    logging.info(f"🚀 {settings.app_name} v{settings.app_version} 시작")
    logging.info(f"환경: {settings.environment}")
    logging.info(f"디버그 모드: {settings.debug}")
    logging.info(f"서버 주소: http://{settings.host}:{settings.port}")

    # 개발 환경에서만 자동으로 테이블 생성 및 초기 관리자 설정
    if settings.debug:
        try:
            from app.init_data import init_database

            init_database()
        except Exception as e:
            logging.error(f"⚠️  초기화 중 오류 발생: {e}", exc_info=True)

    yield

    # Shutdown
    logging.info(f"🛑 {settings.app_name} 종료")


app = FastAPI(
    title=settings.app_name,
    description="Trip planning backend: trips, markers, tours and routes",
    version=settings.app_version,
    lifespan=lifespan,
)

# 최상위 에러 처리 (DB 오류, 예상치 못한 오류)
app.add_middleware(ErrorHandlingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)


# 요청 로깅 미들웨어
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    logging.info(f"[REQUEST] {request.method} {request.url.path}")

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        logging.info(
            f"[RESPONSE] {request.method} {request.url.path} - "
            f"Status: {response.status_code} - Time: {process_time:.3f}s"
        )

        return response
    except Exception as e:
        process_time = time.time() - start_time
        logging.error(
            f"[ERROR] {request.method} {request.url.path} - "
            f"Error: {str(e)} - Time: {process_time:.3f}s"
        )
        raise


# 라우터 등록 (API prefix 통일)
app.include_router(auth_router, prefix="/api")
app.include_router(trips_router, prefix="/api")
app.include_router(collaborators_router, prefix="/api")
app.include_router(markers_router, prefix="/api")
app.include_router(tours_router, prefix="/api")
app.include_router(routes_router, prefix="/api")
app.include_router(mapbox_router, prefix="/api")
app.include_router(admin_invitations_router, prefix="/api")
app.include_router(invitations_router, prefix="/api")


@app.get("/")
async def root():
    return {"message": f"{settings.app_name} is running!"}


@app.get("/health")
async def health_check():
    db_ok, db_message = check_db_connection()
    return {
        "status": "healthy" if db_ok else "degraded",
        "version": settings.app_version,
        "database": db_message,
    }


def _error_field(loc: tuple) -> str | None:
    # ("body", "name") -> "name", ("query", "trip_id") -> "trip_id"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) if parts else None


def _error_message(msg: str) -> str:
    prefix = "Value error, "
    return msg[len(prefix):] if msg.startswith(prefix) else msg


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": _error_field(tuple(error.get("loc", ()))),
            "message": _error_message(error.get("msg", "")),
            "type": error.get("type", "value_error"),
        }
        for error in exc.errors()
    ]
    logging.warning(f"[ValidationError] {request.method} {request.url.path}: {errors}")

    # 중복 제거하고 결합
    unique_messages = list(dict.fromkeys(e["message"] for e in errors))
    detail = unique_messages[0] if unique_messages else "The given data was invalid."
    if len(unique_messages) > 1:
        detail += f" (and {len(unique_messages) - 1} more errors)"

    return JSONResponse(status_code=422, content={"detail": detail, "errors": errors})


@app.exception_handler(BusinessLogicError)
async def business_logic_exception_handler(request: Request, exc: BusinessLogicError):
    logging.info(f"[BusinessLogicError] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "errors": exc.errors},
    )


@app.exception_handler(RoutingError)
async def routing_exception_handler(request: Request, exc: RoutingError):
    logging.warning(
        f"[RoutingError] {request.method} {request.url.path}: {exc.error_type} - {exc.message}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "type": exc.error_type},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app", host=settings.host, port=settings.port, reload=settings.debug
    )
