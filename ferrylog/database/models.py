# ferrylog/database/models.py - 데이터 모델

import re
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Optional, List, Dict, Any


_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def to_snake_case(key: str) -> str:
    """카멜 케이스 키를 스네이크 케이스로 변환 (crewIds -> crew_ids)"""
    return _CAMEL_BOUNDARY.sub('_', key).lower()


def to_camel_case(key: str) -> str:
    """스네이크 케이스 키를 카멜 케이스로 변환 (crew_ids -> crewIds)"""
    parts = key.split('_')
    return parts[0] + ''.join(word.capitalize() for word in parts[1:])


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {to_snake_case(k): v for k, v in (data or {}).items()}


def as_int(value: Any) -> int:
    """숫자 변환 (변환 불가 시 0)"""
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def as_str(value: Any) -> str:
    return '' if value is None else str(value)


def as_str_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [as_str(v) for v in value]


class UserRole(str, Enum):
    """사용자 역할 (값은 화면 표시용 한글)"""

    ADMIN = '관리자'
    CAPTAIN = '선장'
    CHIEF_ENGINEER = '기관장'
    CREW = '승무원'

    @classmethod
    def parse(cls, value: Any) -> 'UserRole':
        """한글 표시값, 상수명, 영문 표기 모두 허용. 알 수 없으면 CREW"""
        if isinstance(value, cls):
            return value
        text = as_str(value).strip()
        for role in cls:
            if text == role.value or text.upper() == role.name:
                return role
        aliases = {
            'admin': cls.ADMIN,
            'captain': cls.CAPTAIN,
            'chiefengineer': cls.CHIEF_ENGINEER,
            'chief_engineer': cls.CHIEF_ENGINEER,
            'crew': cls.CREW,
        }
        return aliases.get(text.lower(), cls.CREW)


class LogStatus(str, Enum):
    """운항일지 상태"""

    DRAFT = 'draft'
    COMPLETED = 'completed'

    @classmethod
    def parse(cls, value: Any) -> 'LogStatus':
        if isinstance(value, cls):
            return value
        return cls.COMPLETED if as_str(value).strip().lower() == 'completed' else cls.DRAFT


@dataclass
class User:
    """사용자(승무원) 데이터 모델"""

    id: str = ""
    name: str = ""
    role: UserRole = UserRole.CREW
    phone: str = ""
    join_date: str = ""  # YYYY-MM-DD
    telegram_chat_id: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data['role'] = self.role.value
        return {to_camel_case(k): v for k, v in data.items()}

    @classmethod
    def from_dict(cls, data: dict) -> 'User':
        values = _normalize_keys(data)
        chat_id = values.get('telegram_chat_id')
        return cls(
            id=as_str(values.get('id')),
            name=as_str(values.get('name')),
            role=UserRole.parse(values.get('role')),
            phone=as_str(values.get('phone')),
            join_date=as_str(values.get('join_date')),
            telegram_chat_id=as_str(chat_id) if chat_id not in (None, '') else None,
        )


@dataclass
class Ship:
    """선박 데이터 모델"""

    id: str = ""
    name: str = ""
    capacity: int = 0  # 정원 (저장 시 강제하지 않음)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'Ship':
        values = _normalize_keys(data)
        return cls(
            id=as_str(values.get('id')),
            name=as_str(values.get('name')),
            capacity=as_int(values.get('capacity')),
        )


@dataclass
class VoyageLog:
    """운항일지 데이터 모델

    선장/기관장/승무원 이름은 저장 시점의 사용자 목록에서 다시 채운 표시용 값이며,
    판단 로직에는 항상 id를 사용한다.
    """

    id: str = ""
    ship_name: str = ""
    captain_id: str = ""
    captain_name: str = ""
    engineer_id: str = ""
    engineer_name: str = ""
    crew_ids: List[str] = field(default_factory=list)
    crew_names: List[str] = field(default_factory=list)
    departure_time: str = ""  # YYYY-MM-DDTHH:MM
    arrival_time: str = ""  # 비어 있으면 운항 중
    departure_location: str = ""
    arrival_location: str = ""
    passenger_count: int = 0
    fuel_level: int = 0  # %
    memo: str = ""
    status: LogStatus = LogStatus.DRAFT
    created_at: str = ""

    @property
    def in_transit(self) -> bool:
        return bool(self.departure_time) and not self.arrival_time

    @property
    def has_arrival(self) -> bool:
        return bool(self.arrival_time)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['status'] = self.status.value
        return {to_camel_case(k): v for k, v in data.items()}

    @classmethod
    def from_dict(cls, data: dict) -> 'VoyageLog':
        values = _normalize_keys(data)
        return cls(
            id=as_str(values.get('id')),
            ship_name=as_str(values.get('ship_name')),
            captain_id=as_str(values.get('captain_id')),
            captain_name=as_str(values.get('captain_name')),
            engineer_id=as_str(values.get('engineer_id')),
            engineer_name=as_str(values.get('engineer_name')),
            crew_ids=as_str_list(values.get('crew_ids')),
            crew_names=as_str_list(values.get('crew_names')),
            departure_time=as_str(values.get('departure_time')),
            arrival_time=as_str(values.get('arrival_time')),
            departure_location=as_str(values.get('departure_location')),
            arrival_location=as_str(values.get('arrival_location')),
            passenger_count=as_int(values.get('passenger_count')),
            fuel_level=as_int(values.get('fuel_level')),
            memo=as_str(values.get('memo')),
            status=LogStatus.parse(values.get('status')),
            created_at=as_str(values.get('created_at')),
        )

    @classmethod
    def coerce(cls, item: Any) -> 'VoyageLog':
        """VoyageLog 또는 dict 모두 VoyageLog로 변환"""
        if isinstance(item, cls):
            return item
        if isinstance(item, dict):
            return cls.from_dict(item)
        return cls()


@dataclass
class NotificationConfig:
    """텔레그램 알림 설정"""

    bot_token: str = ""
    recipients: List[str] = field(default_factory=list)  # 사용자 id 목록

    def to_dict(self) -> dict:
        return {'botToken': self.bot_token, 'recipients': list(self.recipients)}

    @classmethod
    def from_dict(cls, data: dict) -> 'NotificationConfig':
        values = _normalize_keys(data)
        return cls(
            bot_token=as_str(values.get('bot_token')),
            recipients=as_str_list(values.get('recipients')),
        )
