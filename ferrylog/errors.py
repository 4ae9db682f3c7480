# ferrylog/errors.py - 오류 분류

from typing import Iterable


class FerryLogError(Exception):
    """운항일지 관리 공통 예외"""


class IncompleteRecord(FerryLogError):
    """저장 시 필수 항목 누락"""

    def __init__(self, missing_fields: Iterable[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(f"필수 항목 누락: {', '.join(self.missing_fields)}")


class InvalidTransition(FerryLogError):
    """허용되지 않는 운항일지 상태 변경"""

    def __init__(self, current: str, requested: str, reason: str = ''):
        self.current = current
        self.requested = requested
        message = f"상태 변경 불가: {current} -> {requested}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class PersistenceReadFailure(FerryLogError):
    """저장소 읽기 실패 (초기 로드)"""

    def __init__(self, collection: str, cause: Exception = None):
        self.collection = collection
        self.cause = cause
        super().__init__(f"'{collection}' 데이터를 불러오지 못했습니다: {cause}")


class PersistenceWriteFailure(FerryLogError):
    """저장소 쓰기 실패 (메모리 상태는 되돌리지 않음)"""

    def __init__(self, collection: str, cause: Exception = None):
        self.collection = collection
        self.cause = cause
        super().__init__(f"'{collection}' 데이터를 저장하지 못했습니다: {cause}")


class NotificationDispatchFailure(FerryLogError):
    """알림 발송 실패 (저장 흐름은 막지 않음)"""
