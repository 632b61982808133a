"""
회비 규칙

회원 유형별 연회비 스케줄과 갱신 자격 검증.
- Honorary: 만 나이 40 초과
- Visiting: 국적이 본국(home_country)이 아니며 비어 있지 않음
- Senator: senator_certified 필요 (회비 0)
"""

from datetime import date
from decimal import Decimal

from core.constants import HONORARY_MIN_AGE, MEMBERSHIP_DUES, Defaults
from core.domain.models import Member
from core.errors import EligibilityViolation
from core.types import MembershipType
from core.utils.timezone import age_on


def dues_amount(membership_type: MembershipType) -> Decimal:
    """유형별 연회비 (비례 계산 없음)"""
    return MEMBERSHIP_DUES[membership_type]


def member_age(member: Member, today: date | None = None) -> int:
    """회원 만 나이 (생년월일 없으면 0)"""
    if not member.date_of_birth:
        return 0
    return age_on(member.date_of_birth, today)


def check_eligibility(
    member: Member,
    home_country: str = Defaults.HOME_COUNTRY,
    today: date | None = None,
) -> MembershipType:
    """갱신 자격 검증

    Returns:
        적용할 회원 유형 (미지정 시 Full)

    Raises:
        EligibilityViolation: 유형별 조건 불충족
    """
    membership_type = member.effective_type

    if membership_type == MembershipType.HONORARY:
        age = member_age(member, today)
        if age <= HONORARY_MIN_AGE:
            raise EligibilityViolation(
                member.id,
                f"Honorary member {member.name} must be over {HONORARY_MIN_AGE} years old (current age: {age})",
            )

    elif membership_type == MembershipType.VISITING:
        if not member.nationality or member.nationality == home_country:
            raise EligibilityViolation(
                member.id,
                f"Visiting member {member.name} must be a non-{_demonym(home_country)} citizen",
            )

    elif membership_type == MembershipType.SENATOR:
        if not member.senator_certified:
            raise EligibilityViolation(
                member.id,
                f"Senator {member.name} does not have valid senator certification",
            )

    return membership_type


def _demonym(country: str) -> str:
    # 알림 문구용 (Malaysia → Malaysian)
    if country.endswith("a"):
        return country + "n"
    return country
