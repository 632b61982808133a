"""
설정 로더

settings.yaml 로드 및 애플리케이션 설정 생성
"""

from dataclasses import dataclass
from pathlib import Path

import yaml

from core.constants import Defaults, Paths
from core.types import AppMode


@dataclass(frozen=True)
class AppSettings:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    mode: AppMode
    db_path: Path
    home_country: str = Defaults.HOME_COUNTRY
    overdue_days: int = Defaults.DUES_OVERDUE_DAYS
    slack_webhook_url: str | None = None
    web_host: str = Defaults.WEB_HOST
    web_port: int = Defaults.WEB_PORT


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def default_db_path(mode: AppMode) -> Path:
    """모드에 따른 기본 DB 경로

    Args:
        mode: 실행 모드

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if mode == AppMode.PRODUCTION:
        return Paths.PROD_DB
    return Paths.DEV_DB


def _section(data: dict, name: str) -> dict:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise SettingsLoadError(f"settings.yaml의 '{name}' 섹션 형식이 잘못되었습니다")
    return value


def load_settings(path: Path | None = None) -> AppSettings:
    """settings.yaml 파일 로드

    파일이 없으면 development 기본값 반환.

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppSettings 인스턴스

    Raises:
        SettingsLoadError: 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        mode = AppMode.DEVELOPMENT
        return AppSettings(mode=mode, db_path=default_db_path(mode))

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 mapping이어야 합니다")

    # mode 검증
    mode_str = data.get("mode", AppMode.DEVELOPMENT.value)
    try:
        mode = AppMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in AppMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    database = _section(data, "database")
    dues = _section(data, "dues")
    notifier = _section(data, "notifier")
    web = _section(data, "web")

    db_path_value = database.get("path")
    if db_path_value:
        db_path = Path(db_path_value)
        if not db_path.is_absolute():
            db_path = Paths.DATA_DIR.parent / db_path
    else:
        db_path = default_db_path(mode)

    try:
        overdue_days = int(dues.get("overdue_days", Defaults.DUES_OVERDUE_DAYS))
        web_port = int(web.get("port", Defaults.WEB_PORT))
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(f"settings.yaml 숫자 필드 형식 오류: {e}") from e

    return AppSettings(
        mode=mode,
        db_path=db_path,
        home_country=dues.get("home_country", Defaults.HOME_COUNTRY),
        overdue_days=overdue_days,
        slack_webhook_url=notifier.get("slack_webhook_url") or None,
        web_host=web.get("host", Defaults.WEB_HOST),
        web_port=web_port,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _settings: AppSettings | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._settings is None:
            self._settings = load_settings(settings_path)

    @property
    def app(self) -> AppSettings:
        """로드된 설정 전체"""
        assert self._settings is not None
        return self._settings

    @property
    def mode(self) -> AppMode:
        """현재 실행 모드"""
        assert self._settings is not None
        return self._settings.mode

    @property
    def db_path(self) -> Path:
        """현재 모드의 DB 경로"""
        assert self._settings is not None
        return self._settings.db_path

    @property
    def home_country(self) -> str:
        """Visiting 회원 판정 기준 국가"""
        assert self._settings is not None
        return self._settings.home_country

    @property
    def overdue_days(self) -> int:
        """회비 연체 판정 일수"""
        assert self._settings is not None
        return self._settings.overdue_days

    @property
    def slack_webhook_url(self) -> str | None:
        """Slack Webhook URL (없으면 알림 비활성)"""
        assert self._settings is not None
        return self._settings.slack_webhook_url

    @property
    def web_host(self) -> str:
        assert self._settings is not None
        return self._settings.web_host

    @property
    def web_port(self) -> int:
        assert self._settings is not None
        return self._settings.web_port

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._settings = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
