"""
Balance 모듈

기준일 계좌 잔고 재구성
"""

from engine.balance.calculator import BalanceCalculator, BalanceResult, aggregate

__all__ = [
    "BalanceCalculator",
    "BalanceResult",
    "aggregate",
]
