"""
Splits 모듈

거래 분할 관리 (합계 불변식, 부모 상태 전이)
"""

from engine.splits.ledger import SplitLedger, validate_split_sum

__all__ = [
    "SplitLedger",
    "validate_split_sum",
]
