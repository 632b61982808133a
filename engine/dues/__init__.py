"""
Dues 모듈

연회비 갱신 / 리마인더 / 납부 처리
"""

from engine.dues.renewal import DuesRenewalEngine, MemberDuesEntry, RenewalResult
from engine.dues.rules import check_eligibility, dues_amount

__all__ = [
    "DuesRenewalEngine",
    "RenewalResult",
    "MemberDuesEntry",
    "check_eligibility",
    "dues_amount",
]
