# ferrylog/business/aggregation.py - 대시보드 통계 집계

from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..database.models import LogStatus, Ship, User, UserRole, VoyageLog


ROUTE_AB = 'A->B'
ROUTE_BA = 'B->A'


@dataclass
class RouteStats:
    """시간대별 노선 승선객 합계"""

    ab: int = 0
    ba: int = 0
    other: int = 0
    total: int = 0

    def add(self, route: str, passengers: int):
        if route == ROUTE_AB:
            self.ab += passengers
        elif route == ROUTE_BA:
            self.ba += passengers
        else:
            self.other += passengers
        self.total += passengers

    def to_dict(self) -> dict:
        return asdict(self)


def today_str(now: Optional[datetime] = None) -> str:
    """현재 로컬 날짜 (YYYY-MM-DD)"""
    return (now or datetime.now()).strftime('%Y-%m-%d')


def _day(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime('%Y-%m-%d')
    return str(value or '')[:10]


def _logs(logs: Iterable[Any]) -> List[VoyageLog]:
    return [VoyageLog.coerce(item) for item in (logs or [])]


def hour_label(timestamp: str) -> str:
    """
    시각 문자열에서 'HH:00' 추출

    Args:
        timestamp: 'YYYY-MM-DDTHH:MM' (공백 구분도 허용)

    Returns:
        'HH:00' (시간 부분이 없거나 잘못되면 '00:00')
    """
    text = (timestamp or '').replace(' ', 'T')
    if 'T' not in text:
        return '00:00'
    hour_part = text.split('T', 1)[1].split(':')[0]
    try:
        hour = int(hour_part)
    except ValueError:
        return '00:00'
    if not 0 <= hour <= 23:
        return '00:00'
    return f"{hour:02d}:00"


def route_key(log: VoyageLog) -> str:
    return f"{log.departure_location}->{log.arrival_location}"


# =========================================================================
# 운항 현황
# =========================================================================

def in_transit(logs: Iterable[Any]) -> List[VoyageLog]:
    """출발시간은 있고 도착시간이 없는 일지 (입력 순서 유지)"""
    return [log for log in _logs(logs) if log.departure_time and not log.arrival_time]


def completed_today(logs: Iterable[Any], today: Any) -> List[VoyageLog]:
    """오늘 도착한 일지"""
    day = _day(today)
    if not day:
        return []
    return [log for log in _logs(logs) if log.arrival_time and log.arrival_time.startswith(day)]


def total_passengers_today(logs: Iterable[Any], today: Any) -> int:
    """오늘 도착한 일지의 승선객 합계"""
    return sum(log.passenger_count for log in completed_today(logs, today))


def hourly_route_stats(logs: Iterable[Any], today: Any) -> Dict[str, RouteStats]:
    """
    노선별 시간대 승선객 집계

    오늘 출발한 일지만 대상이며, 시간대는 도착시간이 아닌 출발시간 기준.

    Args:
        logs: 운항일지 목록
        today: 기준 날짜

    Returns:
        {'HH:00': RouteStats}
    """
    day = _day(today)
    stats: Dict[str, RouteStats] = {}

    for log in _logs(logs):
        if not day or not log.departure_time.startswith(day):
            continue
        hour = hour_label(log.departure_time)
        stats.setdefault(hour, RouteStats()).add(route_key(log), log.passenger_count)

    return stats


def sorted_hourly_rows(stats: Dict[str, RouteStats]) -> List[Tuple[str, RouteStats]]:
    """표 표시용: 최근 시간대가 위로"""
    return sorted(stats.items(), key=lambda item: item[0], reverse=True)


def chart_series(stats: Dict[str, RouteStats], start_hour: int = 7, end_hour: int = 20) -> List[Dict[str, Any]]:
    """차트용: 고정 시간 범위, 데이터 없는 시간대는 0"""
    series = []
    for hour in range(start_hour, end_hour + 1):
        label = f"{hour:02d}:00"
        row = {'hour': label}
        row.update(stats.get(label, RouteStats()).to_dict())
        series.append(row)
    return series


def capacity_ratio(ship: Any, in_transit_logs: Iterable[Any]) -> float:
    """
    운항 중인 선박의 정원 대비 승선률 (%)

    같은 선박 이름의 운항 중 일지가 여러 건이면 첫 번째만 사용한다.
    """
    if isinstance(ship, dict):
        ship = Ship.from_dict(ship)
    if not isinstance(ship, Ship) or ship.capacity <= 0:
        return 0.0

    for log in _logs(in_transit_logs):
        if log.ship_name == ship.name:
            return log.passenger_count * 100 / ship.capacity
    return 0.0


def ship_overview(ships: Iterable[Any], logs: Iterable[Any]) -> List[Dict[str, Any]]:
    """선박별 현재 상태 (대시보드 선박 현황)"""
    moving = in_transit(logs)
    rows = []
    for ship in ships or []:
        if isinstance(ship, dict):
            ship = Ship.from_dict(ship)
        if not isinstance(ship, Ship):
            continue
        current = next((log for log in moving if log.ship_name == ship.name), None)
        rows.append({
            'shipId': ship.id,
            'shipName': ship.name,
            'capacity': ship.capacity,
            'inTransit': current is not None,
            'logId': current.id if current else None,
            'passengerCount': current.passenger_count if current else 0,
            'ratio': capacity_ratio(ship, moving),
        })
    return rows


def dashboard_summary(logs: Iterable[Any], ships: Iterable[Any], today: Any,
                      current_hour: Optional[int] = None,
                      chart_hours: Tuple[int, int] = (7, 20)) -> Dict[str, Any]:
    """대시보드 화면 전체 통계 (매 요청마다 새로 계산)"""
    log_list = _logs(logs)
    moving = in_transit(log_list)
    stats = hourly_route_stats(log_list, today)
    fleet = ship_overview(ships, log_list)
    if current_hour is None:
        current_hour = datetime.now().hour

    return {
        'today': _day(today),
        'currentHour': f"{current_hour:02d}:00",
        'inTransit': [log.to_dict() for log in moving],
        'inTransitCount': len(moving),
        'completedTodayCount': len(completed_today(log_list, today)),
        'totalPassengersToday': total_passengers_today(log_list, today),
        'activeShips': sum(1 for row in fleet if row['inTransit']),
        'statusCounts': status_counts(log_list),
        'hourlyRows': [dict(hour=hour, **row.to_dict()) for hour, row in sorted_hourly_rows(stats)],
        'chart': chart_series(stats, *chart_hours),
        'fleet': fleet,
    }


# =========================================================================
# 일지 목록 필터
# =========================================================================

def filter_logs(logs: Iterable[Any], date_prefix: str = '', ship_name: str = '',
                captain_query: str = '') -> List[VoyageLog]:
    """
    일지 목록 필터 (출발일, 선박, 선장 이름 일부)

    Returns:
        출발시간 내림차순 정렬된 목록
    """
    query = (captain_query or '').lower()
    result = [
        log for log in _logs(logs)
        if (not date_prefix or log.departure_time.startswith(date_prefix))
        and (not ship_name or log.ship_name == ship_name)
        and (not query or query in log.captain_name.lower())
    ]
    return sorted(result, key=lambda log: log.departure_time, reverse=True)


def visible_logs(logs: Iterable[Any], user: Any) -> List[VoyageLog]:
    """선장은 본인 일지만, 그 외 역할은 전체"""
    if isinstance(user, dict):
        user = User.from_dict(user)
    log_list = _logs(logs)
    if user is not None and user.role is UserRole.CAPTAIN:
        return [log for log in log_list if log.captain_id == user.id]
    return log_list


def status_counts(logs: Iterable[Any]) -> Dict[str, int]:
    """상태별 일지 수"""
    counts = {status.value: 0 for status in LogStatus}
    for log in _logs(logs):
        counts[log.status.value] += 1
    return counts
