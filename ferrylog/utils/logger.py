# ferrylog/utils/logger.py - 로깅 시스템

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import config


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _level(key: str, default: str) -> int:
    """설정 문자열 → logging 레벨 (잘못된 값이면 기본값)"""
    name = str(config.get(key, default)).upper()
    return getattr(logging, name, getattr(logging, default))


def setup_logger(name: str = None, log_file: str = None) -> logging.Logger:
    """
    운항일지 로거 설정 및 반환

    Args:
        name: 로거 이름 (없으면 logging.name, 그것도 없으면 앱 이름)
        log_file: 로그 파일 경로 (없으면 logging.file)
    """
    if name is None:
        name = config.get('logging.name') or config.app_name

    logger = logging.getLogger(name)

    # 이미 핸들러가 설정되어 있으면 반환
    if logger.handlers:
        return logger

    logger.setLevel(_level('logging.level', 'INFO'))

    log_path = Path(log_file or config.get('logging.file', 'logs/ferrylog.log'))
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    # 파일 핸들러 (용량 초과 시 회전)
    file_handler = RotatingFileHandler(
        str(log_path),
        maxBytes=config.get('logging.max_bytes', 10485760),  # 10MB
        backupCount=config.get('logging.backup_count', 5),
        encoding='utf-8'
    )
    file_handler.setLevel(_level('logging.file_level', 'DEBUG'))
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(_level('logging.console_level', 'INFO'))
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


# 전역 로거
logger = setup_logger()
