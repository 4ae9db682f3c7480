# ferrylog/main.py - 메인 애플리케이션

import sys
from pathlib import Path

import eel

from ferrylog.business.reference_service import ReferenceService
from ferrylog.business.voyage_log_service import VoyageLogService
from ferrylog.database.auth_manager import AuthManager
from ferrylog.database.store import CollectionStore
from ferrylog.errors import PersistenceReadFailure
from ferrylog.sync.state_sync import StateSynchronizer
from ferrylog.utils.config import config
from ferrylog.utils.logger import logger
from ferrylog.utils.telegram_notifier import NotificationDispatcher
from ferrylog.web import api


def build_context(db_path: str = None) -> api.ApiContext:
    """저장소 → 동기화 → 서비스 구성 및 초기 데이터 로드

    Raises:
        PersistenceReadFailure: 초기 로드 실패
    """
    store = CollectionStore(db_path)
    sync = StateSynchronizer(store)
    sync.load_all()

    dispatcher = NotificationDispatcher()
    return api.ApiContext(
        sync=sync,
        logs=VoyageLogService(sync, dispatcher),
        reference=ReferenceService(sync),
        auth=AuthManager(db_path),
        dispatcher=dispatcher,
    )


def main():
    """메인 애플리케이션 실행"""

    logger.info("=" * 60)
    logger.info(f"{config.app_name} v{config.version} 시작")
    logger.info("=" * 60)

    try:
        api.configure(build_context())
    except PersistenceReadFailure as e:
        # 빈 대시보드를 보여주지 않도록 시작 중단
        logger.error(f"초기 데이터 로드 실패, 종료합니다: {e}")
        sys.exit(1)

    web_folder = Path(__file__).parent.parent / "web"
    eel.init(str(web_folder), allowed_extensions=['.js', '.html'])

    window_options = {
        'mode': config.get('ui.mode', 'default'),
        'host': 'localhost',
        'port': config.get('ui.port', 3000),
        'size': (config.get('ui.window_width', 1400),
                 config.get('ui.window_height', 900)),
    }

    try:
        logger.info(f"웹 UI 시작: http://localhost:{window_options['port']}")
        eel.start('index.html', **window_options)

    except KeyboardInterrupt:
        logger.info("사용자에 의해 종료됨")

    except Exception as e:
        logger.error(f"애플리케이션 오류: {e}")
        raise

    finally:
        logger.info(f"{config.app_name} 종료")


if __name__ == '__main__':
    main()
