# ferrylog/business/reference_service.py - 인력/선박 기준정보 관리

from datetime import datetime
from typing import Any, Dict, List

from .lifecycle import find_index, new_id
from ..database.models import Ship, User, UserRole, as_int, as_str
from ..database.store import SHIPS, USERS
from ..errors import IncompleteRecord
from ..utils.logger import logger


def build_user(form: Dict[str, Any], now: datetime = None) -> User:
    """입력 폼 → User (이름, 연락처 필수)"""
    user = User.from_dict(form or {})
    missing = [name for name, value in (('name', user.name), ('phone', user.phone)) if not value.strip()]
    if missing:
        raise IncompleteRecord(missing)

    return User(
        id=user.id or new_id('u'),
        name=user.name.strip(),
        role=user.role,
        phone=user.phone.strip(),
        join_date=user.join_date or (now or datetime.now()).strftime('%Y-%m-%d'),
        telegram_chat_id=user.telegram_chat_id,
    )


def build_ship(form: Dict[str, Any]) -> Ship:
    """입력 폼 → Ship (이름, 정원 필수)"""
    values = form or {}
    name = as_str(values.get('name')).strip()
    capacity = as_int(values.get('capacity'))
    missing = []
    if not name:
        missing.append('name')
    if not capacity:
        missing.append('capacity')
    if missing:
        raise IncompleteRecord(missing)

    return Ship(id=as_str(values.get('id')) or new_id('s'), name=name, capacity=capacity)


def upsert_reference(collection: List[Any], item: Any) -> List[Any]:
    """id가 같으면 같은 위치에서 교체, 없으면 맨 뒤에 추가"""
    result = list(collection)
    idx = find_index(result, item.id)
    if idx > -1:
        result[idx] = item
    else:
        result.append(item)
    return result


class ReferenceService:
    """인력/선박 관리 (삭제 시 기존 운항일지는 건드리지 않음)"""

    def __init__(self, sync):
        self.sync = sync

    @property
    def state(self):
        return self.sync.state

    def save_user(self, form: Dict[str, Any]) -> User:
        user = build_user(form)
        self.sync.set_collection(USERS, upsert_reference(self.state.users, user))
        logger.info(f"인력 저장: {user.id} ({user.name}, {user.role.value})")
        return user

    def delete_user(self, user_id: str) -> bool:
        return self.sync.delete_from(USERS, user_id)

    def save_ship(self, form: Dict[str, Any]) -> Ship:
        ship = build_ship(form)
        self.sync.set_collection(SHIPS, upsert_reference(self.state.ships, ship))
        logger.info(f"선박 저장: {ship.id} ({ship.name}, 정원 {ship.capacity}명)")
        return ship

    def delete_ship(self, ship_id: str) -> bool:
        return self.sync.delete_from(SHIPS, ship_id)

    def users_by_role(self, role: UserRole) -> List[User]:
        """입력 화면 선택 목록용"""
        return [user for user in self.state.users if user.role is role]
