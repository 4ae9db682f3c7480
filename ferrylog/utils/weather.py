# ferrylog/utils/weather.py - 날씨 정보 조회 (대시보드 표시용)

from datetime import datetime
from typing import Any, Dict

import requests

from .config import config
from .logger import logger


FALLBACK_WEATHER = {
    'temp': '15°C',
    'condition': '맑음 (기본값)',
    'windSpeed': '2m/s',
    'humidity': '45%',
    'lastUpdated': '데이터 확인 불가',
}


def fetch_weather(url: str = None, timeout: int = None) -> Dict[str, Any]:
    """
    설정된 JSON 엔드포인트에서 날씨 조회

    응답 키는 temp, condition, windSpeed(또는 wind_speed), humidity.
    실패하면 기본값을 돌려주며 예외를 올리지 않는다.
    """
    url = url if url is not None else config.get('weather.url', '')
    timeout = timeout or config.get('weather.timeout', 10)

    if not url:
        logger.info("날씨 URL 미설정, 기본값 사용")
        return dict(FALLBACK_WEATHER, lastUpdated='URL 미설정')

    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"예상하지 못한 응답 형식: {type(data).__name__}")
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning(f"날씨 조회 실패: {e}")
        return dict(FALLBACK_WEATHER, lastUpdated='연결 오류 (재시도 중)')

    return {
        'temp': data.get('temp') or '15°C',
        'condition': data.get('condition') or '맑음',
        'windSpeed': data.get('windSpeed') or data.get('wind_speed') or '0m/s',
        'humidity': data.get('humidity') or '50%',
        'lastUpdated': datetime.now().strftime('%H:%M'),
    }
