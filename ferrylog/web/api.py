# ferrylog/web/api.py - 웹 API (Python ↔ JavaScript)

import eel
from dataclasses import dataclass
from typing import List, Dict, Any, Optional

from ..business.lifecycle import FIELD_LABELS
from ..business.reference_service import ReferenceService
from ..business.voyage_log_service import VoyageLogService
from ..database.auth_manager import AuthManager
from ..database.models import NotificationConfig, User
from ..database.store import TELEGRAM
from ..errors import (
    IncompleteRecord,
    InvalidTransition,
    PersistenceWriteFailure,
)
from ..sync.state_sync import StateSynchronizer
from ..utils.logger import logger
from ..utils.telegram_notifier import NotificationDispatcher, QUICK_TEMPLATES
from ..utils.weather import fetch_weather


@dataclass
class ApiContext:
    """API 함수가 사용하는 서비스 묶음 (main에서 구성)"""

    sync: StateSynchronizer
    logs: VoyageLogService
    reference: ReferenceService
    auth: AuthManager
    dispatcher: NotificationDispatcher


_context: Optional[ApiContext] = None


def configure(context: ApiContext):
    global _context
    _context = context


def _ctx() -> ApiContext:
    if _context is None:
        raise RuntimeError("API 컨텍스트가 설정되지 않았습니다")
    return _context


def _find_user(user_id: Optional[str]) -> Optional[User]:
    if not user_id:
        return None
    return next((u for u in _ctx().sync.state.users if u.id == user_id), None)


def _error(e: Exception) -> Dict[str, Any]:
    """예외 → 화면 응답"""
    if isinstance(e, IncompleteRecord):
        labels = [FIELD_LABELS.get(name, name) for name in e.missing_fields]
        return {
            'success': False,
            'message': f"필수 정보를 모두 입력해주세요 ({', '.join(labels)})",
            'missing': e.missing_fields,
        }
    if isinstance(e, InvalidTransition):
        return {'success': False, 'message': str(e)}
    if isinstance(e, PersistenceWriteFailure):
        return {'success': False, 'message': f'서버 저장에 실패했습니다. 새로고침 시 변경 내용이 사라질 수 있습니다. ({e.cause})'}
    logger.error(f"API 오류: {e}")
    return {'success': False, 'message': f'처리 중 오류가 발생했습니다: {str(e)}'}


# ============================================================================
# 연결 확인 / 인증
# ============================================================================

@eel.expose
def ping() -> bool:
    """Python 백엔드 연결 확인용"""
    return _context is not None and _context.sync.state.loaded


@eel.expose
def authenticate(user_id: str, password: str) -> Dict[str, Any]:
    """사용자 인증"""
    try:
        return _ctx().auth.authenticate(user_id, password, _ctx().sync.state.users)
    except Exception as e:
        logger.error(f"인증 오류: {e}")
        return {'success': False, 'message': f'인증 중 오류가 발생했습니다: {str(e)}'}


@eel.expose
def get_bootstrap() -> Dict[str, Any]:
    """화면 초기 데이터"""
    state = _ctx().sync.state
    return {
        'loaded': state.loaded,
        'users': [u.to_dict() for u in state.users],
        'ships': [s.to_dict() for s in state.ships],
        'quickTemplates': QUICK_TEMPLATES,
    }


# ============================================================================
# 대시보드 / 운항일지
# ============================================================================

@eel.expose
def get_dashboard() -> Dict[str, Any]:
    try:
        return {'success': True, 'dashboard': _ctx().logs.get_dashboard()}
    except Exception as e:
        return _error(e)


@eel.expose
def get_logs(current_user_id: str = '', date: str = '', ship_name: str = '',
             captain_query: str = '') -> Dict[str, Any]:
    """운항일지 목록 (필터)"""
    try:
        logs = _ctx().logs.get_logs(_find_user(current_user_id), date, ship_name, captain_query)
        return {'success': True, 'logs': logs}
    except Exception as e:
        return _error(e)


@eel.expose
def get_log_form(log_id: str = '', current_user_id: str = '') -> Dict[str, Any]:
    """입력 화면 폼 값 (수정 시 기존 일지, 신규 시 초기값)"""
    service = _ctx().logs
    if log_id:
        form = service.edit_form(log_id)
        if form is None:
            return {'success': False, 'message': '운항일지를 찾을 수 없습니다.'}
        return {'success': True, 'form': form, 'editing': True}
    return {'success': True, 'form': service.new_form(_find_user(current_user_id)), 'editing': False}


@eel.expose
def save_log(form: Dict[str, Any], status: str = 'draft', editing_log_id: str = '') -> Dict[str, Any]:
    """운항일지 임시저장/제출"""
    try:
        log = _ctx().logs.save_log(form, status=status, editing_log_id=editing_log_id or None)
        message = '제출되었습니다.' if log.status.value == 'completed' else '임시 저장되었습니다.'
        return {'success': True, 'message': message, 'log': log.to_dict()}
    except Exception as e:
        return _error(e)


@eel.expose
def delete_log(log_id: str) -> Dict[str, Any]:
    try:
        _ctx().logs.delete_log(log_id)
        return {'success': True, 'message': '삭제되었습니다.'}
    except Exception as e:
        return _error(e)


@eel.expose
def clear_logs(confirmed: bool = False) -> Dict[str, Any]:
    """운항일지 전체 삭제 (화면에서 확인 후 confirmed=True로 호출)"""
    if not confirmed:
        return {'success': False, 'message': '전체 삭제는 확인이 필요합니다.'}
    try:
        _ctx().logs.clear_logs()
        return {'success': True, 'message': '모든 운항일지가 삭제되었습니다.'}
    except Exception as e:
        return _error(e)


# ============================================================================
# 인력 / 선박
# ============================================================================

@eel.expose
def save_user(form: Dict[str, Any]) -> Dict[str, Any]:
    try:
        user = _ctx().reference.save_user(form)
        password = (form or {}).get('password')
        if password:
            _ctx().auth.set_password(user.id, password)
        return {'success': True, 'user': user.to_dict()}
    except Exception as e:
        return _error(e)


@eel.expose
def delete_user(user_id: str) -> Dict[str, Any]:
    try:
        _ctx().reference.delete_user(user_id)
        _ctx().auth.remove_credentials(user_id)
        return {'success': True, 'message': '삭제되었습니다.'}
    except Exception as e:
        return _error(e)


@eel.expose
def save_ship(form: Dict[str, Any]) -> Dict[str, Any]:
    try:
        ship = _ctx().reference.save_ship(form)
        return {'success': True, 'ship': ship.to_dict()}
    except Exception as e:
        return _error(e)


@eel.expose
def delete_ship(ship_id: str) -> Dict[str, Any]:
    try:
        _ctx().reference.delete_ship(ship_id)
        return {'success': True, 'message': '삭제되었습니다.'}
    except Exception as e:
        return _error(e)


# ============================================================================
# 텔레그램
# ============================================================================

@eel.expose
def get_telegram_config() -> Dict[str, Any]:
    state = _ctx().sync.state
    return {
        'config': state.notification_config.to_dict(),
        'linkedUsers': [u.to_dict() for u in state.users if u.telegram_chat_id],
    }


@eel.expose
def save_telegram_config(bot_token: str, recipients: List[str]) -> Dict[str, Any]:
    try:
        settings = NotificationConfig(bot_token=bot_token or '', recipients=list(recipients or []))
        _ctx().sync.set_collection(TELEGRAM, settings)
        logger.info(f"텔레그램 설정 저장: 수신자 {len(settings.recipients)}명")
        return {'success': True, 'message': '설정이 저장되었습니다.'}
    except Exception as e:
        return _error(e)


@eel.expose
def send_telegram_message(text: str) -> Dict[str, Any]:
    """선택된 수신자에게 직접 메시지 발송"""
    state = _ctx().sync.state
    if _ctx().dispatcher.broadcast(text, state.users, state.notification_config):
        return {'success': True, 'message': '메시지를 보냈습니다.'}
    return {'success': False, 'message': '메시지를 보내지 못했습니다. 토큰과 수신자를 확인하세요.'}


@eel.expose
def test_telegram_connection(bot_token: str = '') -> Dict[str, Any]:
    token = bot_token or _ctx().sync.state.notification_config.bot_token
    return _ctx().dispatcher.notifier.test_connection(token)


# ============================================================================
# 날씨
# ============================================================================

@eel.expose
def get_weather() -> Dict[str, Any]:
    return fetch_weather()
