"""
어댑터 공통 모델 테스트

QueryFilter 정규화 및 매칭 규칙.
"""

from decimal import Decimal

import pytest

from adapters.models import FilterOp, OrderBy, QueryFilter, normalize_value
from core.types import Category, TransactionType


class TestNormalizeValue:
    """질의 값 정규화"""

    def test_enum_to_value(self) -> None:
        assert normalize_value(TransactionType.INCOME) == "Income"

    def test_decimal_to_str(self) -> None:
        assert normalize_value(Decimal("12.50")) == "12.50"

    def test_list_elements(self) -> None:
        assert normalize_value((Category.MEMBERSHIP, "x")) == ["Membership", "x"]

    def test_passthrough(self) -> None:
        assert normalize_value(3) == 3
        assert normalize_value(None) is None


class TestQueryFilterMatches:
    """QueryFilter.matches() 테스트"""

    @pytest.mark.parametrize(
        "flt, expected",
        [
            (QueryFilter.eq("category", Category.MEMBERSHIP), True),
            (QueryFilter.ne("category", Category.MEMBERSHIP), False),
            (QueryFilter.lte("date", "2026-03-01T00:00:00.000000+00:00"), True),
            (QueryFilter.lt("date", "2026-03-01T00:00:00.000000+00:00"), False),
            (QueryFilter.gte("year", 2026), True),
            (QueryFilter.gt("year", 2026), False),
            (QueryFilter.is_in("status", ["Pending", "Cleared"]), True),
        ],
    )
    def test_comparisons(self, flt: QueryFilter, expected: bool) -> None:
        doc = {
            "category": "Membership",
            "date": "2026-03-01T00:00:00.000000+00:00",
            "year": 2026,
            "status": "Cleared",
        }
        assert flt.matches(doc) is expected

    def test_missing_field_only_matches_ne(self) -> None:
        doc = {"amount": "10"}

        assert QueryFilter.ne("member_id", "m1").matches(doc) is True
        assert QueryFilter.eq("member_id", "m1").matches(doc) is False
        assert QueryFilter.lte("date", "2026").matches(doc) is False

    def test_mismatched_types_do_not_match(self) -> None:
        assert QueryFilter.lt("year", 2026).matches({"year": "2025"}) is False

    def test_is_in_normalizes(self) -> None:
        flt = QueryFilter.is_in("type", [TransactionType.EXPENSE])

        assert flt.op == FilterOp.IN
        assert flt.value == ["Expense"]


class TestOrderBy:

    def test_defaults_ascending(self) -> None:
        assert OrderBy("date").descending is False
