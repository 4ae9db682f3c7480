# tests/conftest.py - 공용 fixture

import pytest

from ferrylog.database.models import NotificationConfig, Ship, User, UserRole
from ferrylog.database.store import CollectionStore, SHIPS, TELEGRAM, USERS
from ferrylog.sync.state_sync import StateSynchronizer


@pytest.fixture
def users():
    return [
        User(id='u1', name='홍길동', role=UserRole.ADMIN, phone='010-1234-5678',
             join_date='2023-01-01', telegram_chat_id='12345678'),
        User(id='u2', name='김선장', role=UserRole.CAPTAIN, phone='010-2222-3333',
             join_date='2023-05-12', telegram_chat_id='87654321'),
        User(id='u3', name='박기관', role=UserRole.CHIEF_ENGINEER, phone='010-4444-5555',
             join_date='2023-06-10', telegram_chat_id='11223344'),
        User(id='u4', name='이승무', role=UserRole.CREW, phone='010-9999-8888',
             join_date='2023-08-20'),
        User(id='u5', name='최선장', role=UserRole.CAPTAIN, phone='010-1111-2222',
             join_date='2023-02-15'),
    ]


@pytest.fixture
def ships():
    return [
        Ship(id='s1', name='탐나라호', capacity=300),
        Ship(id='s2', name='아일래나호', capacity=200),
    ]


@pytest.fixture
def store(tmp_path):
    """초기 데이터 없는 저장소"""
    return CollectionStore(tmp_path / "ferrylog.db", seed=False)


@pytest.fixture
def sync(store, users, ships):
    """사용자/선박이 들어 있고 초기 로드가 끝난 동기화 객체"""
    store.replace(USERS, [u.to_dict() for u in users])
    store.replace(SHIPS, [s.to_dict() for s in ships])
    store.replace(TELEGRAM, NotificationConfig(bot_token='TOKEN', recipients=['u1', 'u2', 'u4']).to_dict())
    synchronizer = StateSynchronizer(store)
    synchronizer.load_all()
    return synchronizer


class FakeNotifier:
    """전송 내용만 기록하는 notifier"""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    def send(self, bot_token, recipient_ids, text, users):
        if self.fail:
            raise RuntimeError("network down")
        self.sent.append(text)
        return True


@pytest.fixture
def fake_notifier():
    return FakeNotifier()
