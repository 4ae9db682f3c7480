# ferrylog/database/seed.py - 초기 데이터 (저장소가 비어 있을 때 사용)

from datetime import datetime
from typing import List, Dict, Any


INITIAL_USERS: List[Dict[str, Any]] = [
    {'id': 'u1', 'name': '홍길동', 'role': '관리자', 'phone': '010-1234-5678',
     'joinDate': '2023-01-01', 'telegramChatId': '12345678'},
    {'id': 'u2', 'name': '김선장', 'role': '선장', 'phone': '010-2222-3333',
     'joinDate': '2023-05-12', 'telegramChatId': '87654321'},
    {'id': 'u3', 'name': '박기관', 'role': '기관장', 'phone': '010-4444-5555',
     'joinDate': '2023-06-10', 'telegramChatId': '11223344'},
    {'id': 'u4', 'name': '이승무', 'role': '승무원', 'phone': '010-9999-8888',
     'joinDate': '2023-08-20'},
    {'id': 'u5', 'name': '최선장', 'role': '선장', 'phone': '010-1111-2222',
     'joinDate': '2023-02-15'},
]

INITIAL_SHIPS: List[Dict[str, Any]] = [
    {'id': 's1', 'name': '탐나라호', 'capacity': 300},
    {'id': 's2', 'name': '아일래나호', 'capacity': 200},
    {'id': 's3', 'name': '가우디호', 'capacity': 100},
    {'id': 's4', 'name': '인어공주호', 'capacity': 100},
]

INITIAL_TELEGRAM: Dict[str, Any] = {'botToken': '', 'recipients': []}


def generate_sample_logs(count: int = 20) -> List[Dict[str, Any]]:
    """샘플 운항일지 생성 (3건 중 1건은 운항 중)"""
    ships = ['탐나라호', '아일래나호', '가우디호', '인어공주호']
    captains = ['김선장', '최선장']
    created_at = datetime.now().isoformat()

    logs = []
    for i in range(1, count + 1):
        is_completed = i % 3 != 0
        day = f"2024-05-{(i + 1) // 2:02d}"
        logs.append({
            'id': f'log-{i}',
            'shipName': ships[i % len(ships)],
            'captainId': 'u2' if i % 2 == 0 else 'u5',
            'captainName': captains[i % len(captains)],
            'engineerId': 'u3',
            'engineerName': '박기관',
            'crewIds': ['u4'],
            'crewNames': ['이승무'],
            'departureTime': f'{day}T09:00',
            'arrivalTime': f'{day}T10:30' if is_completed else '',
            'departureLocation': 'A' if i % 2 else 'B',
            'arrivalLocation': 'B' if i % 2 else 'A',
            'passengerCount': 50 + (i * 37) % 200,
            'fuelLevel': 85 - (i * 2) % 30,
            'memo': '기상 악화 주의' if i % 5 == 0 else '정상 운항',
            'status': 'completed' if is_completed else 'draft',
            'createdAt': created_at,
        })
    return logs


def initial_collections() -> Dict[str, Any]:
    """컬렉션 이름별 초기 데이터"""
    return {
        'users': INITIAL_USERS,
        'ships': INITIAL_SHIPS,
        'logs': generate_sample_logs(),
        'telegram': INITIAL_TELEGRAM,
    }
