"""
어댑터 공통 데이터 모델

Persistence Gateway 질의(filter/order) 표현.
구현체(InMemory/SQLite) 모두 동일한 의미로 해석해야 함.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


class FilterOp(str, Enum):
    """필터 비교 연산자"""

    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    IN = "in"


def normalize_value(value: Any) -> Any:
    """비교용 값 정규화 (Enum → value, Decimal → str)

    문서에는 Enum/Decimal이 문자열로 저장되므로 질의 값도 같은 형태로 맞춤.
    """
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [normalize_value(v) for v in value]
    return value


@dataclass(frozen=True)
class QueryFilter:
    """단일 필드 필터

    Attributes:
        field: 문서 필드 이름
        op: 비교 연산자
        value: 비교 값 (IN이면 목록)
    """

    field: str
    op: FilterOp
    value: Any

    @staticmethod
    def eq(field: str, value: Any) -> "QueryFilter":
        return QueryFilter(field, FilterOp.EQ, normalize_value(value))

    @staticmethod
    def ne(field: str, value: Any) -> "QueryFilter":
        return QueryFilter(field, FilterOp.NE, normalize_value(value))

    @staticmethod
    def lte(field: str, value: Any) -> "QueryFilter":
        return QueryFilter(field, FilterOp.LE, normalize_value(value))

    @staticmethod
    def gte(field: str, value: Any) -> "QueryFilter":
        return QueryFilter(field, FilterOp.GE, normalize_value(value))

    @staticmethod
    def lt(field: str, value: Any) -> "QueryFilter":
        return QueryFilter(field, FilterOp.LT, normalize_value(value))

    @staticmethod
    def gt(field: str, value: Any) -> "QueryFilter":
        return QueryFilter(field, FilterOp.GT, normalize_value(value))

    @staticmethod
    def is_in(field: str, values: list[Any]) -> "QueryFilter":
        return QueryFilter(field, FilterOp.IN, normalize_value(list(values)))

    def matches(self, document: dict[str, Any]) -> bool:
        """문서가 필터 조건을 만족하는지 판정

        필드가 없는 문서는 != 를 제외한 모든 비교에서 불일치.
        """
        if self.field not in document or document[self.field] is None:
            return self.op == FilterOp.NE and self.value is not None

        actual = document[self.field]
        expected = self.value

        if self.op == FilterOp.EQ:
            return actual == expected
        if self.op == FilterOp.NE:
            return actual != expected
        if self.op == FilterOp.IN:
            return actual in expected

        try:
            if self.op == FilterOp.LT:
                return actual < expected
            if self.op == FilterOp.LE:
                return actual <= expected
            if self.op == FilterOp.GT:
                return actual > expected
            if self.op == FilterOp.GE:
                return actual >= expected
        except TypeError:
            return False
        raise ValueError(f"Unsupported filter op: {self.op}")


@dataclass(frozen=True)
class OrderBy:
    """정렬 조건"""

    field: str
    descending: bool = False
