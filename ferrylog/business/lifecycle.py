# ferrylog/business/lifecycle.py - 운항일지 생성/수정/상태 전이

import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..database.models import LogStatus, User, VoyageLog, as_int, as_str, as_str_list
from ..errors import IncompleteRecord, InvalidTransition


# 임시저장에 필요한 항목 (제출 시에는 도착시간 추가)
DRAFT_REQUIRED_FIELDS = ('ship_name', 'captain_id', 'engineer_id', 'departure_time')
COMPLETED_REQUIRED_FIELDS = DRAFT_REQUIRED_FIELDS + ('arrival_time',)

FIELD_LABELS = {
    'ship_name': '선박',
    'captain_id': '선장',
    'engineer_id': '기관장',
    'departure_time': '출발시간',
    'arrival_time': '도착시간',
}

# 완료된 일지를 다시 임시저장 상태로 되돌리는 것을 허용할지 여부
ALLOW_REOPEN_COMPLETED = True


class IdGenerator:
    """'<prefix>-<epoch ms>' 형식의 id 생성기 (같은 프로세스 안에서 중복 없음)"""

    def __init__(self):
        self._last_ms = 0
        self._lock = threading.Lock()

    def next_id(self, prefix: str) -> str:
        with self._lock:
            now_ms = int(time.time() * 1000)
            self._last_ms = max(now_ms, self._last_ms + 1)
            return f"{prefix}-{self._last_ms}"


_id_generator = IdGenerator()


def new_id(prefix: str) -> str:
    return _id_generator.next_id(prefix)


# =========================================================================
# 이벤트
# =========================================================================

@dataclass(frozen=True)
class LogDeparted:
    """신규 일지가 출발시간과 함께 생성됨"""
    log: VoyageLog


@dataclass(frozen=True)
class LogArrived:
    """도착시간이 처음으로 기록됨"""
    log: VoyageLog


def detect_events(previous: Optional[VoyageLog], saved: VoyageLog) -> List[Any]:
    """
    저장 전후 일지를 비교해 알림 대상 이벤트 산출

    - 기존 일지에 도착시간이 처음 채워지면 LogArrived
    - 이미 도착시간이 있던 일지를 다시 저장하면 이벤트 없음
    - 신규 일지: 완료 상태로 바로 제출되면 LogArrived, 아니면 출발시간이 있을 때 LogDeparted
    """
    if previous is None:
        if saved.status is LogStatus.COMPLETED and saved.has_arrival:
            return [LogArrived(saved)]
        if saved.departure_time:
            return [LogDeparted(saved)]
        return []

    if saved.has_arrival and not previous.has_arrival:
        return [LogArrived(saved)]
    return []


# =========================================================================
# 상태 전이
# =========================================================================

def transition(current: Optional[Any], requested: Any, has_arrival: bool,
               allow_reopen: bool = ALLOW_REOPEN_COMPLETED) -> LogStatus:
    """
    상태 전이 검증

    Args:
        current: 현재 상태 (신규 일지는 None → draft 취급)
        requested: 요청 상태
        has_arrival: 도착시간 기록 여부
        allow_reopen: completed -> draft 허용 여부

    Returns:
        전이 후 상태

    Raises:
        InvalidTransition
    """
    current_status = LogStatus.DRAFT if current is None else LogStatus.parse(current)
    requested_status = LogStatus.parse(requested)

    if requested_status is LogStatus.COMPLETED and not has_arrival:
        raise InvalidTransition(current_status.value, requested_status.value, '도착시간이 없습니다')

    if (current_status is LogStatus.COMPLETED and requested_status is LogStatus.DRAFT
            and not allow_reopen):
        raise InvalidTransition(current_status.value, requested_status.value,
                                '완료된 일지는 임시저장으로 되돌릴 수 없습니다')

    return requested_status


# =========================================================================
# 입력 → 일지
# =========================================================================

def _user_names(users: Iterable[Any]) -> Dict[str, str]:
    names = {}
    for user in users or []:
        if isinstance(user, dict):
            user = User.from_dict(user)
        names[user.id] = user.name
    return names


def missing_fields(form_input: Dict[str, Any], status: LogStatus) -> List[str]:
    """요청 상태에 필요한데 비어 있는 항목"""
    required = COMPLETED_REQUIRED_FIELDS if status is LogStatus.COMPLETED else DRAFT_REQUIRED_FIELDS
    return [name for name in required if not as_str(form_input.get(name)).strip()]


def resolve(form_input: Dict[str, Any], users: Iterable[Any],
            existing_log_id: Optional[str] = None,
            status: Optional[Any] = None,
            previous: Optional[VoyageLog] = None,
            now: Optional[datetime] = None,
            allow_reopen: bool = ALLOW_REOPEN_COMPLETED) -> VoyageLog:
    """
    입력 폼 값으로 저장할 운항일지 생성

    모든 필드를 현재 입력에서 다시 계산한다 (병합 아님). 선장/기관장/승무원 이름은
    입력값이 아닌 현재 사용자 목록에서 id로 다시 조회한다.

    Args:
        form_input: 입력 폼 값 (카멜/스네이크 케이스 모두 허용)
        users: 현재 사용자 목록
        existing_log_id: 수정 중인 일지 id (없으면 신규)
        status: 요청 상태 (없으면 입력값의 status, 그것도 없으면 draft)
        previous: 수정 전 일지 (상태 전이 검증, 생성 시각 보존용)
        now: 현재 시각 (테스트용)

    Raises:
        IncompleteRecord: 필수 항목 누락
        InvalidTransition: 허용되지 않는 상태 변경
    """
    values = asdict(VoyageLog.from_dict(form_input or {}))
    raw_status = status if status is not None else (form_input or {}).get('status')
    requested = LogStatus.parse(raw_status)

    missing = missing_fields(values, requested)
    if missing:
        raise IncompleteRecord(missing)

    log_id = existing_log_id or values['id']
    current_status = previous.status if previous is not None else None
    final_status = transition(current_status, requested, bool(values['arrival_time']),
                              allow_reopen=allow_reopen)

    if previous is not None and previous.created_at:
        created_at = previous.created_at
    elif log_id and values['created_at']:
        created_at = values['created_at']
    else:
        created_at = (now or datetime.now()).isoformat()

    names = _user_names(users)
    crew_ids = as_str_list(values['crew_ids'])

    return VoyageLog(
        id=log_id or new_id('log'),
        ship_name=values['ship_name'],
        captain_id=values['captain_id'],
        captain_name=names.get(values['captain_id'], ''),
        engineer_id=values['engineer_id'],
        engineer_name=names.get(values['engineer_id'], ''),
        crew_ids=crew_ids,
        crew_names=[names.get(crew_id, '') for crew_id in crew_ids],
        departure_time=values['departure_time'],
        arrival_time=values['arrival_time'],
        departure_location=values['departure_location'],
        arrival_location=values['arrival_location'],
        passenger_count=max(0, as_int(values['passenger_count'])),
        fuel_level=min(100, max(0, as_int(values['fuel_level']))),
        memo=values['memo'],
        status=final_status,
        created_at=created_at,
    )


# =========================================================================
# 컬렉션 연산 (항상 새 리스트 반환)
# =========================================================================

def item_id(item: Any) -> str:
    if isinstance(item, dict):
        return as_str(item.get('id'))
    return as_str(getattr(item, 'id', ''))


def find_index(collection: List[Any], target_id: str) -> int:
    for idx, item in enumerate(collection):
        if item_id(item) == target_id:
            return idx
    return -1


def find_log(collection: List[VoyageLog], log_id: str) -> Optional[VoyageLog]:
    idx = find_index(collection, log_id)
    return collection[idx] if idx > -1 else None


def upsert(collection: List[VoyageLog], log: VoyageLog) -> List[VoyageLog]:
    """id가 같으면 같은 위치에서 교체, 없으면 맨 앞에 추가"""
    result = list(collection)
    idx = find_index(result, log.id)
    if idx > -1:
        result[idx] = log
    else:
        result.insert(0, log)
    return result


def delete(collection: List[Any], target_id: str) -> List[Any]:
    """id가 같은 항목 제거 (없으면 변화 없음)"""
    return [item for item in collection if item_id(item) != target_id]


def clear_all(collection: List[VoyageLog]) -> List[VoyageLog]:
    """전체 삭제. 확인 절차는 호출하는 쪽 책임이며 되돌릴 수 없다"""
    return []
