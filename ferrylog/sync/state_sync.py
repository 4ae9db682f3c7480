# ferrylog/sync/state_sync.py - 메모리 상태 ↔ 저장소 동기화

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..business.lifecycle import delete
from ..database.models import NotificationConfig, Ship, User, VoyageLog
from ..database.store import COLLECTIONS, LOGS, SHIPS, TELEGRAM, USERS
from ..errors import PersistenceReadFailure, PersistenceWriteFailure
from ..utils.logger import logger


@dataclass
class AppState:
    """화면이 보는 메모리 상태 (서비스/API에 명시적으로 전달)"""

    users: List[User] = field(default_factory=list)
    ships: List[Ship] = field(default_factory=list)
    logs: List[VoyageLog] = field(default_factory=list)
    notification_config: NotificationConfig = field(default_factory=NotificationConfig)
    loading: bool = False  # 초기 로드 중 (이 동안 저장 금지)
    loaded: bool = False  # 초기 로드 성공 여부


# 컬렉션 이름 → (AppState 속성, 모델)
_BINDINGS = {
    USERS: ('users', User),
    SHIPS: ('ships', Ship),
    LOGS: ('logs', VoyageLog),
    TELEGRAM: ('notification_config', NotificationConfig),
}


class StateSynchronizer:
    """
    AppState와 컬렉션 저장소 동기화

    - 시작 시 4개 컬렉션을 병렬로 한 번 읽어 상태를 채운다 (이 과정은 저장을 일으키지 않음)
    - 이후 컬렉션이 바뀔 때마다 해당 컬렉션 전체를 저장소에 덮어쓴다
    - 쓰기 실패는 PersistenceWriteFailure로 올리지만 메모리 상태는 되돌리지 않는다
    """

    def __init__(self, store, state: AppState = None):
        self.store = store
        self.state = state if state is not None else AppState()

    # =========================================================================
    # 초기 로드
    # =========================================================================

    def load_all(self) -> AppState:
        """저장소에서 전체 컬렉션 로드

        Raises:
            PersistenceReadFailure: 하나라도 읽기 실패 시 (state.loaded는 False 유지)
        """
        self.state.loading = True
        self.state.loaded = False
        try:
            with ThreadPoolExecutor(max_workers=len(COLLECTIONS)) as executor:
                futures = {name: executor.submit(self.store.get, name) for name in COLLECTIONS}

                raw: Dict[str, Any] = {}
                for name, future in futures.items():
                    try:
                        raw[name] = future.result()
                    except Exception as e:
                        logger.error(f"초기 데이터 로드 실패 ({name}): {e}")
                        raise PersistenceReadFailure(name, e) from e

            for name in COLLECTIONS:
                self.set_collection(name, self._decode(name, raw[name]))

            self.state.loaded = True
            logger.info(
                f"초기 데이터 로드 완료: 사용자 {len(self.state.users)}명, "
                f"선박 {len(self.state.ships)}척, 일지 {len(self.state.logs)}건"
            )
        finally:
            self.state.loading = False

        return self.state

    def _decode(self, name: str, payload: Any) -> Any:
        _, model = _BINDINGS[name]
        if name == TELEGRAM:
            return model.from_dict(payload if isinstance(payload, dict) else {})
        return [model.from_dict(item) for item in (payload or []) if isinstance(item, dict)]

    # =========================================================================
    # 변경 → 저장
    # =========================================================================

    @property
    def can_write(self) -> bool:
        return self.state.loaded and not self.state.loading

    def get_collection(self, name: str) -> Any:
        attr, _ = _BINDINGS[name]
        return getattr(self.state, attr)

    def set_collection(self, name: str, value: Any) -> bool:
        """메모리 상태 교체 후 저장 (초기 로드 중이면 저장 생략)

        Returns:
            저장소에 썼으면 True
        """
        attr, _ = _BINDINGS[name]
        setattr(self.state, attr, value)

        if not self.can_write:
            logger.debug(f"초기 로드 중 변경, 저장 생략: {name}")
            return False

        self._write(name)
        return True

    def delete_from(self, name: str, item_id: str) -> bool:
        """항목 삭제 후 즉시 저장 (삭제는 일반 변경 경로를 거치지 않고 직접 기록)"""
        attr, _ = _BINDINGS[name]
        setattr(self.state, attr, delete(getattr(self.state, attr), item_id))

        if not self.can_write:
            logger.warning(f"초기 로드 전 삭제 요청, 저장 생략: {name}/{item_id}")
            return False

        self._write(name)
        logger.info(f"삭제 저장 완료: {name}/{item_id}")
        return True

    def clear_logs(self) -> bool:
        """운항일지 전체 삭제 (되돌릴 수 없음)"""
        self.state.logs = []
        if not self.can_write:
            return False
        try:
            self.store.clear_logs()
        except Exception as e:
            logger.error(f"운항일지 전체 삭제 저장 실패: {e}")
            raise PersistenceWriteFailure(LOGS, e) from e
        return True

    def _write(self, name: str):
        payload = self.serialize(name)
        try:
            self.store.replace(name, payload)
        except Exception as e:
            logger.error(f"컬렉션 저장 실패 ({name}): {e}")
            raise PersistenceWriteFailure(name, e) from e

    def serialize(self, name: str) -> Any:
        value = self.get_collection(name)
        if name == TELEGRAM:
            return value.to_dict()
        return [item.to_dict() for item in value]
