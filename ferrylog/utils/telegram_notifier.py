# ferrylog/utils/telegram_notifier.py - 텔레그램 봇 알림 발송

import requests
from typing import Optional, Dict, List, Any, Iterable

from .logger import logger
from .config import config
from ..business.lifecycle import LogArrived, LogDeparted
from ..database.models import NotificationConfig, User, VoyageLog
from ..errors import NotificationDispatchFailure


API_BASE = "https://api.telegram.org"

# 설정 화면의 빠른 메시지
QUICK_TEMPLATES = [
    "기상 악화로 인한 운항 주의 바람.",
    "즉시 선박 상태 보고 바랍니다.",
    "금일 일계표 작성 완료 부탁드립니다.",
    "비상 상황: 즉시 대기 바랍니다.",
]


def format_departure(log: VoyageLog) -> str:
    return f"🚢 {log.ship_name} ({log.captain_name}) 출발 - 기관장: {log.engineer_name}"


def format_arrival(log: VoyageLog) -> str:
    return f"⚓ {log.ship_name} ({log.captain_name}) 도착 완료 - 승선객: {log.passenger_count}명"


def resolve_chat_ids(recipient_ids: Iterable[str], users: Iterable[Any]) -> List[str]:
    """수신자 id 중 텔레그램 chat id가 등록된 사용자만 추림"""
    wanted = set(recipient_ids or [])
    chat_ids = []
    for user in users or []:
        if isinstance(user, dict):
            user = User.from_dict(user)
        if user.id in wanted and user.telegram_chat_id:
            chat_ids.append(user.telegram_chat_id)
    return chat_ids


class TelegramNotifier:
    """텔레그램 Bot API 메시지 전송"""

    def __init__(self, enabled: bool = None, timeout: int = None):
        self.enabled = config.get('telegram.enabled', True) if enabled is None else enabled
        self.timeout = timeout or config.get('telegram.request_timeout', 10)

    def send(self, bot_token: str, recipient_ids: Iterable[str], text: str,
             users: Iterable[Any]) -> bool:
        """
        수신자 전원에게 메시지 전송

        Returns:
            한 명 이상에게 전송 성공 시 True, 보낼 대상이 없으면 False

        Raises:
            NotificationDispatchFailure: 토큰 미설정 또는 전원 전송 실패
        """
        if not self.enabled:
            logger.info("텔레그램 비활성화, 전송 건너뜀")
            return False
        if not bot_token:
            raise NotificationDispatchFailure("봇 토큰이 설정되지 않았습니다")

        chat_ids = resolve_chat_ids(recipient_ids, users)
        if not chat_ids:
            logger.info("텔레그램 수신자 없음")
            return False

        sent = 0
        for chat_id in chat_ids:
            if self._send_message(bot_token, chat_id, text):
                sent += 1

        logger.info(f"텔레그램 전송: {sent}/{len(chat_ids)}명")
        if sent == 0:
            raise NotificationDispatchFailure(f"텔레그램 전송 실패 (수신자 {len(chat_ids)}명)")
        return True

    def test_connection(self, bot_token: str) -> Dict[str, Any]:
        """getMe API로 봇 토큰 확인"""
        if not bot_token:
            return {'success': False, 'message': '봇 토큰을 입력하세요.'}

        try:
            resp = requests.get(f"{API_BASE}/bot{bot_token}/getMe", timeout=self.timeout)
            if resp.status_code == 200:
                data = resp.json()
                if data.get('ok'):
                    username = data['result'].get('username', '')
                    logger.info(f"텔레그램 봇 연결 확인: @{username}")
                    return {'success': True, 'username': username}
            logger.error(f"getMe HTTP 오류: {resp.status_code} - {resp.text[:200]}")
            return {'success': False, 'message': f'연결 실패 (HTTP {resp.status_code})'}
        except requests.exceptions.RequestException as e:
            logger.error(f"봇 정보 가져오기 실패: {e}")
            return {'success': False, 'message': f'연결 오류: {e}'}

    def _send_message(self, bot_token: str, chat_id: str, text: str) -> Optional[int]:
        """텔레그램 메시지 전송. 성공 시 message_id 반환"""
        try:
            url = f"{API_BASE}/bot{bot_token}/sendMessage"
            payload = {
                'chat_id': chat_id,
                'text': text,
            }
            resp = requests.post(url, json=payload, timeout=self.timeout)
            if resp.status_code == 200:
                data = resp.json()
                if data.get('ok'):
                    return data['result']['message_id']
            else:
                logger.error(f"텔레그램 메시지 전송 실패: {resp.status_code}")
        except requests.exceptions.RequestException as e:
            logger.error(f"텔레그램 메시지 전송 오류: {e}")
        return None


class NotificationDispatcher:
    """
    운항일지 이벤트 → 텔레그램 알림

    알림 실패는 로그만 남기고 저장 흐름으로 전파하지 않는다.
    """

    def __init__(self, notifier: TelegramNotifier = None):
        self.notifier = notifier or telegram_notifier

    def notify_departure(self, log: VoyageLog, users: List[User], settings: NotificationConfig) -> bool:
        return self._deliver(format_departure(log), users, settings)

    def notify_arrival(self, log: VoyageLog, users: List[User], settings: NotificationConfig) -> bool:
        return self._deliver(format_arrival(log), users, settings)

    def broadcast(self, text: str, users: List[User], settings: NotificationConfig) -> bool:
        """설정 화면에서 직접 보내는 메시지"""
        if not text or not text.strip():
            return False
        return self._deliver(text.strip(), users, settings)

    def dispatch(self, events: Iterable[Any], users: List[User], settings: NotificationConfig) -> int:
        """이벤트별 알림 발송, 성공 건수 반환"""
        delivered = 0
        for event in events or []:
            if isinstance(event, LogArrived):
                ok = self.notify_arrival(event.log, users, settings)
            elif isinstance(event, LogDeparted):
                ok = self.notify_departure(event.log, users, settings)
            else:
                logger.warning(f"알 수 없는 이벤트: {event!r}")
                continue
            if ok:
                delivered += 1
        return delivered

    def _deliver(self, text: str, users: List[User], settings: NotificationConfig) -> bool:
        try:
            return self.notifier.send(settings.bot_token, settings.recipients, text, users)
        except NotificationDispatchFailure as e:
            logger.warning(f"알림 발송 실패: {e}")
        except Exception as e:
            logger.error(f"알림 발송 오류: {e}")
        return False


# 싱글톤 인스턴스
telegram_notifier = TelegramNotifier()
