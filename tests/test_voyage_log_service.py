# tests/test_voyage_log_service.py - 운항일지 서비스 흐름 테스트

from datetime import datetime

import pytest

from ferrylog.business.voyage_log_service import VoyageLogService
from ferrylog.database.models import LogStatus
from ferrylog.errors import IncompleteRecord, PersistenceWriteFailure
from ferrylog.utils.telegram_notifier import NotificationDispatcher

from conftest import FakeNotifier


NOW = datetime(2024, 5, 1, 10, 30)


def departure_form(**overrides):
    form = {
        'shipName': '탐나라호',
        'captainId': 'u2',
        'engineerId': 'u3',
        'crewIds': ['u4'],
        'departureTime': '2024-05-01T09:15',
        'departureLocation': 'A',
        'arrivalLocation': 'B',
        'passengerCount': 120,
        'fuelLevel': 90,
    }
    form.update(overrides)
    return form


@pytest.fixture
def service(sync, fake_notifier):
    return VoyageLogService(sync, NotificationDispatcher(fake_notifier), async_dispatch=False)


def test_departure_shows_in_transit_with_capacity(service, fake_notifier):
    log = service.save_log(departure_form())

    assert log.status is LogStatus.DRAFT
    assert log.captain_name == '김선장'
    assert log.crew_names == ['이승무']

    dashboard = service.get_dashboard(NOW)
    assert dashboard['inTransitCount'] == 1
    assert dashboard['inTransit'][0]['id'] == log.id

    tamnara = next(row for row in dashboard['fleet'] if row['shipName'] == '탐나라호')
    assert tamnara['inTransit'] is True
    assert tamnara['ratio'] == 40.0

    assert fake_notifier.sent == ['🚢 탐나라호 (김선장) 출발 - 기관장: 박기관']


def test_arrival_notifies_once(service, fake_notifier):
    log = service.save_log(departure_form())

    form = log.to_dict()
    form['arrivalTime'] = '2024-05-01T10:05'
    arrived = service.save_log(form, status=LogStatus.COMPLETED, editing_log_id=log.id)

    assert arrived.id == log.id
    assert arrived.created_at == log.created_at
    assert arrived.status is LogStatus.COMPLETED

    # 도착시간이 이미 있는 일지를 다시 저장해도 알림 없음
    service.save_log(arrived.to_dict(), status=LogStatus.COMPLETED, editing_log_id=log.id)

    assert fake_notifier.sent == [
        '🚢 탐나라호 (김선장) 출발 - 기관장: 박기관',
        '⚓ 탐나라호 (김선장) 도착 완료 - 승선객: 120명',
    ]

    dashboard = service.get_dashboard(NOW)
    assert dashboard['inTransitCount'] == 0
    assert dashboard['completedTodayCount'] == 1
    assert dashboard['totalPassengersToday'] == 120
    assert len(service.state.logs) == 1


def test_new_logs_are_prepended(service):
    first = service.save_log(departure_form())
    second = service.save_log(departure_form(shipName='아일래나호'))

    assert [log.id for log in service.state.logs] == [second.id, first.id]


def test_saved_logs_survive_reload(service, store):
    from ferrylog.sync.state_sync import StateSynchronizer

    log = service.save_log(departure_form())

    reloaded = StateSynchronizer(store)
    reloaded.load_all()
    assert [l.id for l in reloaded.state.logs] == [log.id]
    assert reloaded.state.logs[0].captain_name == '김선장'


def test_incomplete_submit_is_rejected(service, fake_notifier):
    with pytest.raises(IncompleteRecord) as exc:
        service.save_log(departure_form(), status=LogStatus.COMPLETED)

    assert exc.value.missing_fields == ['arrival_time']
    assert service.state.logs == []
    assert fake_notifier.sent == []


def test_notification_failure_does_not_break_save(sync):
    service = VoyageLogService(sync, NotificationDispatcher(FakeNotifier(fail=True)),
                               async_dispatch=False)

    log = service.save_log(departure_form())

    assert [l.id for l in service.state.logs] == [log.id]


def test_write_failure_still_notifies(service, store, fake_notifier, monkeypatch):
    def broken_replace(name, payload):
        raise OSError("disk full")

    monkeypatch.setattr(store, 'replace', broken_replace)

    with pytest.raises(PersistenceWriteFailure):
        service.save_log(departure_form())

    # 메모리에는 반영된 상태
    assert len(service.state.logs) == 1
    assert len(fake_notifier.sent) == 1


def test_delete_and_clear(service):
    first = service.save_log(departure_form())
    service.save_log(departure_form(shipName='아일래나호'))

    service.delete_log(first.id)
    assert first.id not in [log.id for log in service.state.logs]

    service.clear_logs()
    assert service.state.logs == []
    assert service.get_dashboard(NOW)['inTransitCount'] == 0


def test_new_form_defaults(service, users):
    captain = users[1]
    form = service.new_form(captain, NOW)

    assert form['captainId'] == 'u2'
    assert form['captainName'] == '김선장'
    assert form['departureTime'] == '2024-05-01T10:30'
    assert form['fuelLevel'] == 100

    admin_form = service.new_form(users[0], NOW)
    assert admin_form['captainId'] == ''


def test_edit_form(service):
    log = service.save_log(departure_form())
    assert service.edit_form(log.id)['shipName'] == '탐나라호'
    assert service.edit_form('missing') is None


def test_captain_sees_only_own_logs(service, users):
    service.save_log(departure_form())
    service.save_log(departure_form(captainId='u5', shipName='아일래나호'))

    own = service.get_logs(users[1])
    assert [log['captainId'] for log in own] == ['u2']

    assert len(service.get_logs(users[0])) == 2
    assert len(service.get_logs(users[0], ship_name='아일래나호')) == 1
