# ferrylog/utils/config.py - 설정 관리

import json
import threading
from pathlib import Path
from typing import Any, Dict


class Config:
    """애플리케이션 설정 관리 클래스"""

    _instance = None
    _config: Dict[str, Any] = {}
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        with self._lock:
            if not self._config:
                self.load_config()

    def load_config(self, config_path: str = None):
        """설정 파일 로드"""
        if config_path is None:
            base_dir = Path(__file__).parent.parent.parent
            config_path = base_dir / "config" / "settings.json"

        config_path = Path(config_path)

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                self._config = json.load(f)
        except FileNotFoundError:
            # settings.example.json이 있으면 그 내용으로 시작
            example_path = config_path.parent / "settings.example.json"
            if example_path.exists():
                with open(example_path, 'r', encoding='utf-8') as f:
                    self._config = json.load(f)
                print(
                    f"[설정] settings.json이 없어 settings.example.json 값을 사용합니다.\n"
                    f"      {config_path} 을 만들어 봇 토큰/경로를 직접 입력하세요."
                )
            else:
                print(f"[설정] 설정 파일을 찾을 수 없습니다: {config_path}")
                self._config = self._get_default_config()
        except json.JSONDecodeError as e:
            print(f"[설정] 설정 파일 파싱 오류: {e}")
            self._config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """기본 설정 반환 (settings.json 없을 때 사용)"""
        return {
            "app": {
                "name": "운항일지 관리",
                "version": "1.0.0"
            },
            "database": {
                "filename": "ferrylog.db",
                "local_path": "data"
            },
            "logging": {
                "level": "INFO",
                "file": "logs/ferrylog.log"
            },
            "telegram": {
                "enabled": False,
                "request_timeout": 10
            },
            "dashboard": {
                "chart_start_hour": 7,
                "chart_end_hour": 20
            },
            "ui": {
                "port": 3000,
                "window_width": 1400,
                "window_height": 900
            }
        }

    def get(self, key: str, default: Any = None) -> Any:
        """설정 값 가져오기 (점 표기법 지원)

        예: config.get('database.filename')
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    @property
    def app_name(self) -> str:
        return self.get('app.name', '운항일지 관리')

    @property
    def version(self) -> str:
        return self.get('app.version', '1.0.0')

    @property
    def db_path(self) -> Path:
        """데이터베이스 파일 경로 (비어 있으면 ./data 사용)"""
        local_path = self.get('database.local_path', '')
        filename = self.get('database.filename', 'ferrylog.db')
        if not local_path or local_path.strip() == '':
            local_path = 'data'
        return Path(local_path) / filename

    @property
    def chart_hours(self) -> tuple:
        """대시보드 차트 x축 시간 범위 (시작, 끝)"""
        return (
            int(self.get('dashboard.chart_start_hour', 7)),
            int(self.get('dashboard.chart_end_hour', 20)),
        )


# 싱글톤 인스턴스
config = Config()
