# ferrylog/database/auth_manager.py - 로그인 인증

import sqlite3
import hashlib
import hmac
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, List, Dict, Any
from contextlib import contextmanager

from .models import User, UserRole
from ..utils.logger import logger
from ..utils.config import config


# 역할별 로그인 후 첫 화면
LANDING_VIEWS = {
    UserRole.CAPTAIN: 'log-entry',
    UserRole.CHIEF_ENGINEER: 'log-entry',
}


def landing_view(role: UserRole) -> str:
    """선장/기관장은 운항정보 입력, 그 외는 대시보드"""
    return LANDING_VIEWS.get(role, 'dashboard')


class AuthManager:
    """
    사용자 비밀번호 관리 및 인증

    사용자 정보 자체는 users 컬렉션에 있고, 여기서는 id별 비밀번호 해시만 보관한다.
    """

    def __init__(self, db_path: str = None):
        if db_path is None:
            db_path = config.db_path

        self.db_path = Path(db_path)
        self._ensure_db_directory()
        self._init_auth_tables()
        self._create_admin_account()
        logger.info(f"인증 시스템 초기화 완료: {self.db_path}")

    def _ensure_db_directory(self):
        """데이터베이스 디렉토리 생성"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self):
        """데이터베이스 연결 컨텍스트 매니저"""
        conn = sqlite3.connect(str(self.db_path))
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

    def _init_auth_tables(self):
        """인증 테이블 초기화"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS credentials (
                    user_id TEXT PRIMARY KEY,
                    password_hash TEXT NOT NULL,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    last_login TEXT
                )
            ''')

    def _create_admin_account(self):
        """초기 관리자(u1) 비밀번호 설정"""
        admin_id = config.get('admin.user_id', 'u1')
        if self.has_credentials(admin_id):
            return
        initial_password = config.get('admin.initial_password', '0000')
        self.set_password(admin_id, initial_password)
        logger.info(f"관리자 초기 비밀번호 설정: {admin_id}")

    def _hash_password(self, password: str) -> str:
        """비밀번호 해시화 (PBKDF2-HMAC-SHA256, salt 포함)"""
        salt = os.urandom(32)
        dk = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt, 260000)
        return f"pbkdf2${salt.hex()}${dk.hex()}"

    def _verify_password(self, password: str, stored_hash: str) -> bool:
        """비밀번호 검증"""
        try:
            _, salt_hex, dk_hex = stored_hash.split('$')
            salt = bytes.fromhex(salt_hex)
        except ValueError:
            return False
        dk = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt, 260000)
        return hmac.compare_digest(dk.hex(), dk_hex)

    # =========================================================================
    # 비밀번호 관리
    # =========================================================================

    def has_credentials(self, user_id: str) -> bool:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT 1 FROM credentials WHERE user_id = ?', (user_id,))
            return cursor.fetchone() is not None

    def set_password(self, user_id: str, password: str) -> bool:
        """비밀번호 설정/변경"""
        if not user_id or not password:
            return False
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO credentials (user_id, password_hash, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    password_hash = excluded.password_hash,
                    updated_at = excluded.updated_at
            ''', (user_id, self._hash_password(password), datetime.now().isoformat()))
        logger.info(f"비밀번호 설정: {user_id}")
        return True

    def remove_credentials(self, user_id: str) -> bool:
        """사용자 삭제 시 비밀번호 정보 제거"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM credentials WHERE user_id = ?', (user_id,))
            return cursor.rowcount > 0

    # =========================================================================
    # 인증
    # =========================================================================

    def authenticate(self, user_id: str, password: str, users: List[User]) -> Dict[str, Any]:
        """
        사용자 인증

        Returns:
            {'success': True, 'user': {...}} (비밀번호 정보 제외) 또는
            {'success': False, 'message': ...}
        """
        failure = {'success': False, 'message': '아이디 또는 비밀번호가 일치하지 않습니다.'}

        user = next((u for u in users if u.id == user_id), None)
        if user is None:
            logger.warning(f"로그인 실패 (사용자 없음): {user_id}")
            return failure

        row = self._get_credentials(user_id)
        if row is None or not self._verify_password(password or '', row['password_hash']):
            logger.warning(f"로그인 실패: {user_id}")
            return failure

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                'UPDATE credentials SET last_login = ? WHERE user_id = ?',
                (datetime.now().isoformat(), user_id)
            )

        logger.info(f"사용자 로그인: {user_id} ({user.role.value})")
        return {
            'success': True,
            'user': user.to_dict(),
            'landing': landing_view(user.role),
        }

    def _get_credentials(self, user_id: str) -> Optional[sqlite3.Row]:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM credentials WHERE user_id = ?', (user_id,))
            return cursor.fetchone()
