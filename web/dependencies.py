"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
Ledger는 앱 lifespan에서 생성되어 app.state에 보관.
"""

from fastapi import Request

from core.config.loader import Settings, get_settings
from engine.bootstrap import Ledger


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


def get_ledger(request: Request) -> Ledger:
    """Ledger 파사드 반환

    테스트에서는 app.dependency_overrides로 교체.
    """
    return request.app.state.ledger
