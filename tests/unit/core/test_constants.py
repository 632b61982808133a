"""
core/constants.py 테스트

모든 경로가 pathlib.Path 타입이고, 상수가 정상적으로 접근 가능한지 확인
"""

from decimal import Decimal
from pathlib import Path

from core.constants import (
    HONORARY_MIN_AGE,
    MEMBERSHIP_DUES,
    PROJECT_ROOT,
    Defaults,
    Paths,
    Tolerances,
)
from core.types import MembershipType


class TestProjectRoot:
    """PROJECT_ROOT 테스트"""

    def test_project_root_is_absolute(self) -> None:
        assert isinstance(PROJECT_ROOT, Path)
        assert PROJECT_ROOT.is_absolute()

    def test_project_root_contains_core_directory(self) -> None:
        assert (PROJECT_ROOT / "core").is_dir()


class TestPaths:
    """Paths 테스트"""

    def test_paths_under_root(self) -> None:
        for path in (Paths.CONFIG_DIR, Paths.DATA_DIR, Paths.LOGS_DIR, Paths.PROD_DB, Paths.DEV_DB):
            assert isinstance(path, Path)
            assert PROJECT_ROOT in path.parents

    def test_db_files_differ(self) -> None:
        assert Paths.PROD_DB != Paths.DEV_DB


class TestDuesSchedule:
    """회비 스케줄 테스트"""

    def test_every_type_priced(self) -> None:
        assert set(MEMBERSHIP_DUES) == set(MembershipType)

    def test_amounts(self) -> None:
        assert MEMBERSHIP_DUES[MembershipType.FULL] == Decimal("300")
        assert MEMBERSHIP_DUES[MembershipType.SENATOR] == Decimal("0")
        assert HONORARY_MIN_AGE == 40


class TestDefaults:

    def test_values(self) -> None:
        assert Defaults.CURRENCY == "MYR"
        assert Tolerances.AMOUNT == Decimal("0.01")
