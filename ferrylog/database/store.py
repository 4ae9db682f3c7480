# ferrylog/database/store.py - 컬렉션 저장소 (SQLite)

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .seed import initial_collections
from ..utils.logger import logger
from ..utils.config import config


USERS = 'users'
SHIPS = 'ships'
LOGS = 'logs'
TELEGRAM = 'telegram'

COLLECTIONS = (USERS, SHIPS, LOGS, TELEGRAM)


class CollectionStore:
    """
    컬렉션 단위 키-값 저장소

    사용자, 선박, 운항일지, 텔레그램 설정 4개 컬렉션을 각각 JSON 한 덩어리로 보관.
    부분 수정은 지원하지 않으며 저장은 항상 컬렉션 전체 교체.
    """

    def __init__(self, db_path: str = None, seed: bool = True):
        if db_path is None:
            db_path = config.db_path

        self.db_path = Path(db_path)
        self._ensure_db_directory()
        self._init_database(initial_collections() if seed else None)
        logger.info(f"저장소 초기화 완료: {self.db_path}")

    def _ensure_db_directory(self):
        """데이터베이스 디렉토리 생성"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self):
        """데이터베이스 연결 컨텍스트 매니저"""
        conn = sqlite3.connect(str(self.db_path), timeout=30)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"데이터베이스 오류: {e}")
            raise
        finally:
            conn.close()

    def _init_database(self, seed_data: Optional[Dict[str, Any]]):
        """테이블 생성 및 비어 있는 컬렉션 초기 데이터 채우기"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS collections (
                    name TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            for name in COLLECTIONS:
                if seed_data is not None:
                    initial = seed_data.get(name)
                else:
                    initial = {} if name == TELEGRAM else []
                cursor.execute(
                    'INSERT OR IGNORE INTO collections (name, payload, updated_at) VALUES (?, ?, ?)',
                    (name, json.dumps(initial, ensure_ascii=False), datetime.now().isoformat())
                )

    def _check_name(self, name: str):
        if name not in COLLECTIONS:
            raise ValueError(f"알 수 없는 컬렉션: {name}")

    def get(self, name: str) -> Any:
        """컬렉션 전체 조회"""
        self._check_name(name)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT payload FROM collections WHERE name = ?', (name,))
            row = cursor.fetchone()
            if not row:
                return {} if name == TELEGRAM else []
            return json.loads(row['payload'])

    def replace(self, name: str, payload: Any) -> bool:
        """컬렉션 전체 교체"""
        self._check_name(name)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO collections (name, payload, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
            ''', (name, json.dumps(payload, ensure_ascii=False), datetime.now().isoformat()))

        size = len(payload) if isinstance(payload, list) else 1
        logger.debug(f"컬렉션 저장: {name} ({size}건)")
        return True

    def clear_logs(self) -> bool:
        """운항일지 전체 삭제 (되돌릴 수 없음)"""
        self.replace(LOGS, [])
        logger.warning("운항일지 전체 삭제")
        return True
