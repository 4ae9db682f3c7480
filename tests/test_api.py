# tests/test_api.py - 웹 API 응답 테스트

import pytest

pytest.importorskip('eel')

from ferrylog.business.reference_service import ReferenceService
from ferrylog.business.voyage_log_service import VoyageLogService
from ferrylog.database.auth_manager import AuthManager
from ferrylog.utils.telegram_notifier import NotificationDispatcher
from ferrylog.web import api


@pytest.fixture
def context(sync, tmp_path, fake_notifier):
    dispatcher = NotificationDispatcher(fake_notifier)
    ctx = api.ApiContext(
        sync=sync,
        logs=VoyageLogService(sync, dispatcher, async_dispatch=False),
        reference=ReferenceService(sync),
        auth=AuthManager(tmp_path / "auth.db"),
        dispatcher=dispatcher,
    )
    api.configure(ctx)
    yield ctx
    api.configure(None)


def test_ping(context):
    assert api.ping() is True


def test_save_log_reports_missing_fields(context):
    result = api.save_log({'shipName': '탐나라호'}, 'draft')

    assert result['success'] is False
    assert result['missing'] == ['captain_id', 'engineer_id', 'departure_time']
    assert '선장' in result['message']


def test_save_and_list_logs(context):
    form = {'shipName': '탐나라호', 'captainId': 'u2', 'engineerId': 'u3',
            'departureTime': '2024-05-01T09:00', 'passengerCount': 30}

    saved = api.save_log(form, 'draft')
    assert saved['success'] is True
    assert saved['message'] == '임시 저장되었습니다.'

    listed = api.get_logs('u1')
    assert [log['id'] for log in listed['logs']] == [saved['log']['id']]

    assert api.get_log_form(saved['log']['id'])['editing'] is True
    assert api.get_log_form('', 'u2')['form']['captainId'] == 'u2'


def test_clear_logs_requires_confirmation(context):
    assert api.clear_logs()['success'] is False
    assert api.clear_logs(confirmed=True)['success'] is True


def test_login(context):
    assert api.authenticate('u1', '0000')['success'] is True
    assert api.authenticate('u1', 'bad')['success'] is False


def test_save_user_with_password(context):
    result = api.save_user({'name': '정승무', 'phone': '010-0000-0000', 'role': '승무원',
                            'password': 'crew1'})
    assert result['success'] is True

    user_id = result['user']['id']
    assert api.authenticate(user_id, 'crew1')['success'] is True

    api.delete_user(user_id)
    assert context.auth.has_credentials(user_id) is False


def test_telegram_settings(context, fake_notifier):
    assert api.save_telegram_config('NEW', ['u2'])['success'] is True
    assert context.sync.state.notification_config.bot_token == 'NEW'

    assert api.send_telegram_message('즉시 선박 상태 보고 바랍니다.')['success'] is True
    assert fake_notifier.sent == ['즉시 선박 상태 보고 바랍니다.']

    linked = api.get_telegram_config()['linkedUsers']
    assert [u['id'] for u in linked] == ['u1', 'u2', 'u3']
