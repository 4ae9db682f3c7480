# tests/test_weather.py - 날씨 조회 테스트

import requests

from ferrylog.utils import weather
from ferrylog.utils.weather import FALLBACK_WEATHER, fetch_weather


class FakeResponse:
    def __init__(self, data):
        self._data = data

    def raise_for_status(self):
        pass

    def json(self):
        return self._data


def test_missing_url_returns_fallback():
    result = fetch_weather(url='')
    assert result['temp'] == FALLBACK_WEATHER['temp']
    assert result['lastUpdated'] == 'URL 미설정'


def test_success(monkeypatch):
    monkeypatch.setattr(
        weather.requests, 'get',
        lambda url, timeout=None: FakeResponse({'temp': '18°C', 'condition': '흐림',
                                                'windSpeed': '5m/s', 'humidity': '70%'})
    )
    result = fetch_weather(url='http://weather.local/jeju')

    assert result['temp'] == '18°C'
    assert result['condition'] == '흐림'
    assert result['windSpeed'] == '5m/s'
    assert result['humidity'] == '70%'


def test_network_error_returns_fallback(monkeypatch):
    def offline(url, timeout=None):
        raise requests.exceptions.Timeout("timeout")

    monkeypatch.setattr(weather.requests, 'get', offline)
    result = fetch_weather(url='http://weather.local/jeju')

    assert result['condition'] == FALLBACK_WEATHER['condition']
    assert result['lastUpdated'] == '연결 오류 (재시도 중)'


def test_unexpected_payload_returns_fallback(monkeypatch):
    monkeypatch.setattr(weather.requests, 'get', lambda url, timeout=None: FakeResponse(['rain']))
    assert fetch_weather(url='http://weather.local/jeju')['lastUpdated'] == '연결 오류 (재시도 중)'
