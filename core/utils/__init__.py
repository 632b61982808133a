"""
유틸리티 패키지

타임존/날짜 처리, 금액 변환 등 공통 유틸리티
"""

from core.utils.money import to_decimal, money_str, amounts_match
from core.utils.timezone import (
    now_utc,
    parse_datetime,
    to_iso,
    end_of_day_iso,
    year_of,
    start_of_year_iso,
    days_since,
    age_on,
)

__all__ = [
    "to_decimal",
    "money_str",
    "amounts_match",
    "now_utc",
    "parse_datetime",
    "to_iso",
    "end_of_day_iso",
    "year_of",
    "start_of_year_iso",
    "days_since",
    "age_on",
]
