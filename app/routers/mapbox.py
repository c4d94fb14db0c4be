"""Mapbox 사용량 API"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models import User
from app.schemas.route_schemas import MapboxUsageResponse
from app.services.mapbox_limiter import MapboxRequestLimiter

router = APIRouter(prefix="/mapbox", tags=["Mapbox"])


@router.get("/usage", response_model=MapboxUsageResponse)
def get_usage(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """이번 달 Mapbox 요청 수와 남은 한도"""
    return MapboxRequestLimiter(db).get_usage_stats()
