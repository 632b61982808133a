"""
Balance Calculator

계좌 잔고 재구성: opening balance + Σ 거래 부호 금액 (기준일 이하).

- 비분할 거래: 부호 금액을 해당 버킷에 합산
- 분할 거래: 각 분할 금액을 부모 type 부호로 분할 카테고리 버킷에 합산
- 합산은 순서 무관 (Decimal 덧셈)
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from adapters.interfaces import IPersistenceGateway
from adapters.models import OrderBy, QueryFilter
from core.domain.models import BankAccount, Transaction, TransactionSplit
from core.errors import AccountNotFound
from core.types import Bucket, Category, Collection
from core.utils.money import money_str
from core.utils.timezone import DateLike, end_of_day_iso
from engine.splits.ledger import SplitLedger

logger = logging.getLogger(__name__)


def empty_buckets() -> dict[Bucket, Decimal]:
    return {bucket: Decimal("0") for bucket in Bucket}


@dataclass(frozen=True)
class BalanceResult:
    """잔고 계산 결과

    Attributes:
        total: 필터 버킷(또는 전체 버킷) 합 + opening balance
        by_bucket: 버킷별 부호 있는 합계 (opening balance 제외)
        opening_balance: 계좌 initial_balance
    """

    total: Decimal
    by_bucket: dict[Bucket, Decimal] = field(default_factory=empty_buckets)
    opening_balance: Decimal = Decimal("0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": money_str(self.total),
            "by_bucket": {b.value: money_str(v) for b, v in self.by_bucket.items()},
            "opening_balance": money_str(self.opening_balance),
        }


def aggregate(
    transactions: list[Transaction],
    splits_by_parent: dict[str, list[TransactionSplit]],
) -> dict[Bucket, Decimal]:
    """버킷별 부호 금액 합산 (순수 함수)

    분할 목록이 비어 있는 분할 거래는 부모 금액을 원래 카테고리 버킷으로 합산.
    """
    buckets = empty_buckets()
    for tx in transactions:
        sign = tx.type.sign
        splits = splits_by_parent.get(tx.id) if tx.is_split else None
        if splits:
            for split in splits:
                buckets[Bucket.for_category(split.category)] += abs(split.amount) * sign
        elif tx.is_split:
            fallback = Bucket.for_category(tx.original_category or Category.UNSET)
            logger.warning(f"Split transaction without splits, using parent amount: {tx.id}")
            buckets[fallback] += tx.signed_amount
        else:
            buckets[tx.effective_bucket] += tx.signed_amount
    return buckets


class BalanceCalculator:
    """계좌 잔고 계산기

    Args:
        gateway: 문서 저장소
        splits: SplitLedger (분할 일괄 조회)
    """

    def __init__(self, gateway: IPersistenceGateway, splits: SplitLedger):
        self.gateway = gateway
        self.splits = splits

    async def load_account(self, account_id: str) -> BankAccount:
        doc = await self.gateway.get(Collection.BANK_ACCOUNTS, account_id)
        if doc is None:
            raise AccountNotFound(account_id)
        return BankAccount.from_dict(doc)

    async def account_transactions(
        self,
        account_id: str,
        as_of: DateLike | None = None,
    ) -> list[Transaction]:
        """계좌 거래 (기준일 이하, 날짜 오름차순)"""
        filters = [QueryFilter.eq("bank_account_id", account_id)]
        if as_of is not None:
            filters.append(QueryFilter.lte("date", end_of_day_iso(as_of)))
        docs = await self.gateway.query(Collection.TRANSACTIONS, filters, OrderBy("date"))
        return [Transaction.from_dict(d) for d in docs]

    async def compute_balance(
        self,
        account_id: str,
        as_of: DateLike | None = None,
        category_filter: Bucket | None = None,
    ) -> BalanceResult:
        """기준일 잔고 계산

        Args:
            account_id: 계좌 ID
            as_of: 기준일 (날짜만 주면 당일 포함, None이면 전체)
            category_filter: 버킷 필터 (지정 시 total = 해당 버킷 + opening balance)

        Raises:
            AccountNotFound: 계좌 없음
        """
        account = await self.load_account(account_id)
        transactions = await self.account_transactions(account_id, as_of)
        split_parents = [tx.id for tx in transactions if tx.is_split]
        splits_by_parent = await self.splits.get_splits_for_parents(split_parents)

        by_bucket = aggregate(transactions, splits_by_parent)
        opening = account.initial_balance

        if category_filter is not None:
            total = by_bucket[Bucket(category_filter)] + opening
        else:
            total = sum(by_bucket.values(), Decimal("0")) + opening

        logger.debug(
            f"Balance computed: account={account_id}, as_of={as_of}, total={total}",
            extra={"transactions": len(transactions)},
        )
        return BalanceResult(total=total, by_bucket=by_bucket, opening_balance=opening)
