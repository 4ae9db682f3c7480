# ferrylog/business/voyage_log_service.py - 운항일지 비즈니스 로직

import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from . import aggregation
from .lifecycle import detect_events, find_log, resolve, upsert
from ..database.models import LogStatus, User, UserRole, VoyageLog
from ..database.store import LOGS
from ..utils.config import config
from ..utils.logger import logger


class VoyageLogService:
    """
    운항일지 저장/삭제/조회

    저장 흐름: 입력 검증 및 이름 재조회 → 컬렉션 반영 → 저장소 기록 → 알림 이벤트 발송
    """

    def __init__(self, sync, dispatcher=None, async_dispatch: bool = True):
        self.sync = sync
        self.dispatcher = dispatcher
        self.async_dispatch = async_dispatch

    @property
    def state(self):
        return self.sync.state

    # =========================================================================
    # 입력 화면
    # =========================================================================

    def new_form(self, current_user: Optional[User] = None, now: datetime = None) -> Dict[str, Any]:
        """신규 입력 폼 초기값 (선장이면 본인 자동 선택, 출발시간은 현재 시각)"""
        form = VoyageLog(fuel_level=100).to_dict()
        form['departureTime'] = (now or datetime.now()).strftime('%Y-%m-%dT%H:%M')
        if current_user is not None and current_user.role is UserRole.CAPTAIN:
            form['captainId'] = current_user.id
            form['captainName'] = current_user.name
        return form

    def edit_form(self, log_id: str) -> Optional[Dict[str, Any]]:
        """수정할 일지의 폼 값"""
        log = find_log(self.state.logs, log_id)
        return log.to_dict() if log else None

    # =========================================================================
    # 저장 / 삭제
    # =========================================================================

    def save_log(self, form_input: Dict[str, Any], status: Any = LogStatus.DRAFT,
                 editing_log_id: Optional[str] = None) -> VoyageLog:
        """
        운항일지 저장 (신규/수정)

        Raises:
            IncompleteRecord: 필수 항목 누락
            InvalidTransition: 허용되지 않는 상태 변경
            PersistenceWriteFailure: 저장소 기록 실패 (메모리에는 반영된 상태)
        """
        log_id = editing_log_id or (form_input or {}).get('id') or None
        previous = find_log(self.state.logs, log_id) if log_id else None

        log = resolve(
            form_input,
            self.state.users,
            existing_log_id=log_id,
            status=status,
            previous=previous,
        )
        events = detect_events(previous, log)

        try:
            self.sync.set_collection(LOGS, upsert(self.state.logs, log))
            action = '수정' if previous else '생성'
            logger.info(f"운항일지 {action}: {log.id} ({log.ship_name}, {log.status.value})")
        finally:
            self._dispatch(events)

        return log

    def delete_log(self, log_id: str) -> bool:
        logger.info(f"운항일지 삭제: {log_id}")
        return self.sync.delete_from(LOGS, log_id)

    def clear_logs(self) -> bool:
        """전체 삭제 (호출 전 사용자 확인 필수)"""
        count = len(self.state.logs)
        result = self.sync.clear_logs()
        logger.warning(f"운항일지 전체 삭제: {count}건")
        return result

    def _dispatch(self, events: List[Any]):
        if not events or self.dispatcher is None:
            return

        users = list(self.state.users)
        settings = self.state.notification_config

        if self.async_dispatch:
            threading.Thread(
                target=self.dispatcher.dispatch,
                args=(events, users, settings),
                name="notification-dispatch",
                daemon=True
            ).start()
        else:
            self.dispatcher.dispatch(events, users, settings)

    # =========================================================================
    # 조회
    # =========================================================================

    def get_logs(self, current_user: Optional[User] = None, date: str = '',
                 ship_name: str = '', captain_query: str = '') -> List[Dict[str, Any]]:
        """일지 목록 (선장은 본인 일지만)"""
        logs = aggregation.visible_logs(self.state.logs, current_user)
        logs = aggregation.filter_logs(logs, date, ship_name, captain_query)
        return [log.to_dict() for log in logs]

    def get_dashboard(self, now: datetime = None) -> Dict[str, Any]:
        """대시보드 통계"""
        now = now or datetime.now()
        return aggregation.dashboard_summary(
            self.state.logs,
            self.state.ships,
            aggregation.today_str(now),
            current_hour=now.hour,
            chart_hours=config.chart_hours,
        )
