# tests/test_lifecycle.py - 운항일지 생성/수정/상태 전이 테스트

from datetime import datetime

import pytest

from ferrylog.business.lifecycle import (
    LogArrived,
    LogDeparted,
    IdGenerator,
    clear_all,
    delete,
    detect_events,
    find_log,
    resolve,
    transition,
    upsert,
)
from ferrylog.database.models import LogStatus, VoyageLog
from ferrylog.errors import IncompleteRecord, InvalidTransition


def _form(**overrides):
    form = {
        'shipName': '탐나라호',
        'captainId': 'u2',
        'engineerId': 'u3',
        'departureTime': '2024-05-01T09:00',
        'passengerCount': 120,
        'fuelLevel': 90,
    }
    form.update(overrides)
    return form


def test_resolve_creates_draft_with_new_id(users):
    """신규 저장 시 id/생성시각 부여"""
    now = datetime(2024, 5, 1, 9, 5)
    log = resolve(_form(), users, now=now)

    assert log.id.startswith('log-')
    assert log.status is LogStatus.DRAFT
    assert log.created_at == now.isoformat()
    assert log.captain_name == '김선장'
    assert log.engineer_name == '박기관'
    assert log.in_transit


def test_resolve_reports_every_missing_field(users):
    """필수 항목 누락 시 누락 항목을 모두 알려줌"""
    with pytest.raises(IncompleteRecord) as exc:
        resolve({'shipName': '탐나라호'}, users)

    assert exc.value.missing_fields == ['captain_id', 'engineer_id', 'departure_time']


def test_resolve_completed_requires_arrival(users):
    with pytest.raises(IncompleteRecord) as exc:
        resolve(_form(), users, status='completed')

    assert exc.value.missing_fields == ['arrival_time']


def test_resolve_reresolves_names_from_users(users):
    """폼에 남은 예전 이름 대신 현재 사용자 목록의 이름 사용"""
    form = _form(captainName='옛날선장', crewIds=['u4', 'unknown'], crewNames=['x', 'y'])
    log = resolve(form, users)

    assert log.captain_name == '김선장'
    assert log.crew_ids == ['u4', 'unknown']
    assert log.crew_names == ['이승무', '']


def test_resolve_update_keeps_id_and_created_at(users):
    created = resolve(_form(), users, now=datetime(2024, 5, 1, 9, 0))
    updated = resolve(
        _form(arrivalTime='2024-05-01T10:30'),
        users,
        existing_log_id=created.id,
        status='completed',
        previous=created,
        now=datetime(2024, 5, 1, 11, 0),
    )

    assert updated.id == created.id
    assert updated.created_at == created.created_at
    assert updated.status is LogStatus.COMPLETED


def test_resolve_normalizes_numbers(users):
    log = resolve(_form(passengerCount='-5', fuelLevel='150'), users)
    assert log.passenger_count == 0
    assert log.fuel_level == 100

    log = resolve(_form(passengerCount='abc', fuelLevel=None), users)
    assert log.passenger_count == 0
    assert log.fuel_level == 0


def test_resolve_round_trip(users):
    """저장된 일지를 다시 폼으로 불러 저장하면 같은 값"""
    first = resolve(_form(crewIds=['u4'], memo='정상 운항'), users)
    collection = upsert([], first)

    again = resolve(find_log(collection, first.id).to_dict(), users,
                    existing_log_id=first.id, previous=first)

    assert again == first


def test_id_generator_unique_within_process():
    gen = IdGenerator()
    ids = [gen.next_id('log') for _ in range(500)]
    assert len(set(ids)) == 500


def test_transition_policy():
    assert transition(None, 'draft', False) is LogStatus.DRAFT
    assert transition('draft', 'completed', True) is LogStatus.COMPLETED
    assert transition('completed', 'completed', True) is LogStatus.COMPLETED
    # 완료 → 임시저장은 기본 허용
    assert transition('completed', 'draft', True) is LogStatus.DRAFT

    with pytest.raises(InvalidTransition):
        transition('draft', 'completed', False)

    with pytest.raises(InvalidTransition):
        transition('completed', 'draft', True, allow_reopen=False)


def test_upsert_replaces_in_place_or_prepends():
    a = VoyageLog(id='a', ship_name='탐나라호')
    b = VoyageLog(id='b', ship_name='가우디호')
    collection = upsert(upsert([], a), b)
    assert [log.id for log in collection] == ['b', 'a']

    changed = VoyageLog(id='a', ship_name='인어공주호')
    collection = upsert(collection, changed)
    collection = upsert(collection, changed)

    assert [log.id for log in collection] == ['b', 'a']
    assert find_log(collection, 'a') == changed


def test_delete_is_idempotent():
    collection = [VoyageLog(id='a'), VoyageLog(id='b')]

    once = delete(collection, 'a')
    twice = delete(once, 'a')

    assert [log.id for log in once] == ['b']
    assert twice == once
    assert delete(collection, 'missing') == collection


def test_clear_all():
    assert clear_all([VoyageLog(id='a'), VoyageLog(id='b')]) == []


def test_detect_events():
    departed = VoyageLog(id='a', departure_time='2024-05-01T09:00')
    arrived = VoyageLog(id='a', departure_time='2024-05-01T09:00',
                        arrival_time='2024-05-01T10:30', status=LogStatus.COMPLETED)

    assert detect_events(None, departed) == [LogDeparted(departed)]
    assert detect_events(departed, arrived) == [LogArrived(arrived)]
    # 이미 도착시간이 있던 일지 재저장
    assert detect_events(arrived, arrived) == []
    # 처음부터 제출된 일지
    assert detect_events(None, arrived) == [LogArrived(arrived)]
    assert detect_events(None, VoyageLog(id='x')) == []
