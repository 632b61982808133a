"""
타임존 / 날짜 유틸리티

내부 저장: UTC ISO-8601 문자열 (고정 폭, 사전순 정렬 = 시간순 정렬)
입력: date, datetime, ISO 문자열 모두 허용
"""

from datetime import date, datetime, time, timezone
from typing import Union

DateLike = Union[date, datetime, str]


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def parse_datetime(value: DateLike) -> datetime:
    """날짜 값을 UTC datetime으로 변환

    Args:
        value: date, datetime 또는 ISO-8601 문자열 ("2026-01-01", "2026-01-01T09:00:00Z" 등)

    Returns:
        UTC datetime (naive 입력은 UTC로 간주)

    Raises:
        ValueError: 해석할 수 없는 문자열
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)

    if dt.tzinfo is None:
        # naive datetime은 UTC로 간주
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(value: DateLike) -> str:
    """저장용 ISO-8601 문자열 (마이크로초 포함 고정 폭)

    Example:
        >>> to_iso("2026-01-01")
        '2026-01-01T00:00:00.000000+00:00'
    """
    return parse_datetime(value).isoformat(timespec="microseconds")


def is_date_only(value: DateLike) -> bool:
    """시간 정보가 없는 날짜 값 여부"""
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    return "T" not in value and " " not in value.strip()


def end_of_day_iso(value: DateLike) -> str:
    """기준일(cutoff) ISO 문자열

    날짜만 주어지면 해당일 23:59:59.999999 까지 포함.
    시간이 주어지면 그대로 사용.
    """
    dt = parse_datetime(value)
    if is_date_only(value):
        dt = datetime.combine(dt.date(), time.max, tzinfo=timezone.utc)
    return dt.isoformat(timespec="microseconds")


def year_of(value: DateLike) -> int:
    """연도 추출"""
    return parse_datetime(value).year


def start_of_year_iso(year: int) -> str:
    """해당 연도 1월 1일 00:00 UTC"""
    return datetime(year, 1, 1, tzinfo=timezone.utc).isoformat(timespec="microseconds")


def days_since(value: DateLike, now: datetime | None = None) -> int:
    """경과 일수 (소수점 버림)"""
    now = now or now_utc()
    return (now - parse_datetime(value)).days


def age_on(date_of_birth: DateLike, today: date | None = None) -> int:
    """만 나이 계산

    Args:
        date_of_birth: 생년월일
        today: 기준일 (None이면 오늘)
    """
    today = today or now_utc().date()
    born = parse_datetime(date_of_birth).date()
    years = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        years -= 1
    return years
