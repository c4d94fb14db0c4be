"""
투어 계층 및 마커 순서 관리

마커 위치는 투어별로 0부터 연속된 값을 유지합니다.
여러 행의 위치를 바꾸는 작업은 한 트랜잭션에서 수행하고 실패 시 롤백합니다.
"""

import logging
from collections import Counter, defaultdict, deque
from collections.abc import Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import BusinessLogicError
from app.models import Marker, MarkerTour, Tour, Trip

logger = logging.getLogger(__name__)

DUPLICATE_NAME_MESSAGE = "A tour with this name already exists"


def _sibling_query(db: Session, trip_id: int, parent_tour_id: int | None):
    query = db.query(Tour).filter(Tour.trip_id == trip_id)
    if parent_tour_id is None:
        return query.filter(Tour.parent_tour_id.is_(None))
    return query.filter(Tour.parent_tour_id == parent_tour_id)


def assert_unique_name(
    db: Session,
    trip_id: int,
    parent_tour_id: int | None,
    name: str,
    exclude_id: int | None = None,
) -> None:
    """같은 부모 아래 형제 투어끼리 이름 중복 금지 (대소문자 무시)"""
    query = _sibling_query(db, trip_id, parent_tour_id).with_entities(Tour.name)
    if exclude_id is not None:
        query = query.filter(Tour.id != exclude_id)

    # DB의 lower()는 ASCII만 변환하는 경우가 있어 비교는 파이썬에서 수행
    folded = name.casefold()
    if any(sibling.casefold() == folded for (sibling,) in query):
        raise BusinessLogicError(
            DUPLICATE_NAME_MESSAGE,
            errors=[{"field": "name", "message": DUPLICATE_NAME_MESSAGE, "type": "unique"}],
        )


def create_tour(db: Session, trip: Trip, name: str, parent: Tour | None = None) -> Tour:
    if parent is not None:
        if parent.trip_id != trip.id:
            raise BusinessLogicError("Parent tour does not belong to this trip")
        if parent.parent_tour_id is not None:
            raise BusinessLogicError("Sub-tours cannot contain further sub-tours")

    parent_id = parent.id if parent else None
    assert_unique_name(db, trip.id, parent_id, name)

    max_position = (
        _sibling_query(db, trip.id, parent_id).with_entities(func.max(Tour.position)).scalar()
    )
    tour = Tour(
        name=name,
        trip_id=trip.id,
        parent_tour_id=parent_id,
        position=0 if max_position is None else max_position + 1,
    )
    db.add(tour)
    db.commit()
    db.refresh(tour)
    logger.info(f"투어 생성: tour_id={tour.id}, trip_id={trip.id}, parent={parent_id}")
    return tour


def rename_tour(db: Session, tour: Tour, name: str) -> Tour:
    assert_unique_name(db, tour.trip_id, tour.parent_tour_id, name, exclude_id=tour.id)
    tour.name = name
    db.commit()
    db.refresh(tour)
    return tour


def _renumber(links: Sequence[MarkerTour]) -> None:
    for index, link in enumerate(links):
        link.position = index


def attach_marker(db: Session, tour: Tour, marker: Marker) -> Tour:
    """마커를 맨 뒤에 추가 (중복 허용)"""
    if marker.trip_id != tour.trip_id:
        raise BusinessLogicError("Marker does not belong to this tour's trip")

    max_position = max((link.position for link in tour.marker_links), default=-1)
    tour.marker_links.append(MarkerTour(marker_id=marker.id, position=max_position + 1))
    db.commit()
    db.refresh(tour)
    return tour


def detach_marker(db: Session, tour: Tour, marker_id: str) -> Tour:
    """가장 앞에 있는 한 개만 제거 후 위치 재정렬"""
    link = next((item for item in tour.marker_links if item.marker_id == marker_id), None)
    if link is None:
        return tour

    try:
        tour.marker_links.remove(link)
        _renumber(tour.marker_links)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(tour)
    return tour


def reorder_markers(db: Session, tour: Tour, marker_ids: list[str]) -> Tour:
    """전달된 순서로 위치를 0..n-1 재작성 (현재 마커들의 순열이어야 함)"""
    current = [link.marker_id for link in tour.marker_links]
    if Counter(current) != Counter(marker_ids):
        raise BusinessLogicError(
            "The marker list must contain exactly the markers of this tour",
            errors=[{
                "field": "marker_ids",
                "message": "The marker list must contain exactly the markers of this tour",
                "type": "permutation",
            }],
        )

    # 같은 마커가 여러 번 있으면 기존 순서대로 행을 배정
    links_by_marker: dict[str, deque[MarkerTour]] = defaultdict(deque)
    for link in tour.marker_links:
        links_by_marker[link.marker_id].append(link)

    try:
        for index, marker_id in enumerate(marker_ids):
            links_by_marker[marker_id].popleft().position = index
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(tour)
    return tour


def reorder_sub_tours(db: Session, tour: Tour, sub_tour_ids: list[int]) -> Tour:
    children = {sub.id: sub for sub in tour.sub_tours}
    if sorted(children) != sorted(sub_tour_ids):
        raise BusinessLogicError(
            "The sub-tour list must contain exactly the sub-tours of this tour",
            errors=[{
                "field": "sub_tour_ids",
                "message": "The sub-tour list must contain exactly the sub-tours of this tour",
                "type": "permutation",
            }],
        )

    try:
        for index, sub_tour_id in enumerate(sub_tour_ids):
            children[sub_tour_id].position = index
        db.commit()
    except Exception:
        db.rollback()
        raise

    return tour


def sort_markers_nearest_neighbor(
    marker_ids: Sequence[str], distances: Sequence[Sequence[float | None]]
) -> list[str]:
    """
    최근접 이웃 방식으로 방문 순서 결정

    첫 마커에서 시작해 방문하지 않은 가장 가까운 마커로 이동합니다.
    경로가 없는(None) 마커만 남으면 남은 순서대로 붙입니다.
    """
    count = len(marker_ids)
    if count < 2:
        return list(marker_ids)

    order = [0]
    visited = {0}
    current = 0

    while len(order) < count:
        nearest = None
        nearest_distance = float("inf")
        for i in range(count):
            if i in visited:
                continue
            distance = distances[current][i]
            if distance is not None and distance < nearest_distance:
                nearest_distance = distance
                nearest = i

        if nearest is None:
            nearest = next(i for i in range(count) if i not in visited)

        order.append(nearest)
        visited.add(nearest)
        current = nearest

    return [marker_ids[i] for i in order]


def calculate_total_distance(order: Sequence[int], distances: Sequence[Sequence[float | None]]) -> float:
    total = 0.0
    for a, b in zip(order, order[1:]):
        if distances[a][b] is not None:
            total += distances[a][b]
    return total
