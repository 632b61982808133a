"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path

from core.types import MembershipType


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    CURRENCY: str = "MYR"
    HOME_COUNTRY: str = "Malaysia"
    SYSTEM_ACTOR: str = "System"

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 회비 연체 판정 기준 (일)
    DUES_OVERDUE_DAYS: int = 30

    # 재고 부족 경고 기준 수량
    LOW_STOCK_THRESHOLD: int = 5


class Tolerances:
    """금액 비교 허용 오차"""

    # 분할 합계 / 정산 잔고 비교 허용치
    AMOUNT: Decimal = Decimal("0.01")


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"
    CLI_LOGS_DIR: Path = LOGS_DIR / "cli"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "ledger_prod.db"
    DEV_DB: Path = DATA_DIR / "ledger_dev.db"


# 회원 유형별 연회비 (고정 스케줄, RM)
MEMBERSHIP_DUES: dict[MembershipType, Decimal] = {
    MembershipType.PROBATION: Decimal("350"),
    MembershipType.FULL: Decimal("300"),
    MembershipType.HONORARY: Decimal("50"),
    MembershipType.SENATOR: Decimal("0"),
    MembershipType.VISITING: Decimal("500"),
}

# Honorary 회원 최소 나이 (초과해야 함)
HONORARY_MIN_AGE: int = 40
