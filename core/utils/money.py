"""
금액 유틸리티

모든 금액은 Decimal로 계산하고 문자열로 저장.
float 입력은 str() 경유로 변환하여 이진 오차 유입 방지.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from core.constants import Tolerances


def to_decimal(value: Any, default: Decimal | None = None) -> Decimal:
    """저장 값 → Decimal

    Args:
        value: Decimal, int, float, str 또는 None
        default: None/빈 문자열일 때 반환할 값 (None이면 Decimal("0"))

    Raises:
        ValueError: 숫자로 해석할 수 없는 값
    """
    if value is None or value == "":
        return default if default is not None else Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


def money_str(value: Decimal) -> str:
    """Decimal → 저장용 문자열"""
    return str(value)


def amounts_match(a: Decimal, b: Decimal, tolerance: Decimal = Tolerances.AMOUNT) -> bool:
    """허용 오차 이내 일치 여부 (|a - b| <= tolerance)"""
    return abs(a - b) <= tolerance
