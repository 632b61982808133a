"""
Transactions 모듈

거래 CRUD와 조회 필터
"""

from engine.transactions.store import TransactionFilter, TransactionStore, normalize_fields

__all__ = [
    "TransactionStore",
    "TransactionFilter",
    "normalize_fields",
]
