"""
Transaction Store

거래(Transaction) CRUD + 조회.

- 생성/수정 시 None 필드는 저장하지 않음 (수정 partial에서 None은 필드 삭제)
- 분할된 거래의 카테고리 변경 거부 (SplitCategoryConflict)
- 분할된 거래의 금액 변경 거부 (SplitSumMismatch)
- 유형 변경은 분할에 전파
- 삭제: 분할 → 재고 이동 복원 → 거래 순서로 제거
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from adapters.interfaces import IPersistenceGateway
from adapters.models import OrderBy, QueryFilter
from core.constants import Defaults
from core.domain.models import Transaction
from core.errors import (
    SplitCategoryConflict,
    SplitSumMismatch,
    TransactionNotFound,
    ValidationError,
)
from core.types import BatchResult, Bucket, Category, Collection, TransactionStatus, TransactionType
from core.utils.money import amounts_match, money_str, to_decimal
from core.utils.timezone import DateLike, end_of_day_iso, now_utc, to_iso
from engine.inventory.synchronizer import InventorySynchronizer
from engine.splits.ledger import SplitLedger

logger = logging.getLogger(__name__)


LINK_FIELDS = ("inventory_link_id", "inventory_variant", "inventory_quantity")

# 호출자가 직접 쓸 수 없는 필드 (분할 원장/정산이 관리)
_MANAGED_FIELDS = frozenset({
    "id", "is_split", "split_ids", "original_category", "created_at", "updated_at",
})


def _normalize(key: str, value: Any) -> Any:
    """입력 값 → 저장 형태"""
    if value is None:
        return None
    if key == "amount":
        return money_str(to_decimal(value))
    if key in ("date", "reconciled_at"):
        return to_iso(value)
    if key == "type":
        return TransactionType(value).value
    if key == "category":
        return Category(value).value
    if key == "status":
        return TransactionStatus(value).value
    if key == "bucket":
        return Bucket(value).value
    if key in ("year", "inventory_quantity"):
        return int(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return money_str(value)
    if isinstance(value, (date, datetime)):
        return to_iso(value)
    return value


def normalize_fields(data: dict[str, Any]) -> dict[str, Any]:
    """dict 전체 정규화 (None 값 유지)"""
    return {key: _normalize(key, value) for key, value in data.items()}


def _link_state(data: dict[str, Any]) -> tuple[bool, bool]:
    """(연결 필드 하나라도 있음, 3요소 완비)"""
    link_id = data.get("inventory_link_id")
    variant = data.get("inventory_variant")
    quantity = data.get("inventory_quantity")
    any_set = bool(link_id) or variant not in (None, "") or quantity is not None
    complete = bool(link_id) and variant is not None and quantity is not None and int(quantity) > 0
    return any_set, complete


@dataclass(frozen=True)
class TransactionFilter:
    """거래 목록 필터 (모두 AND)"""

    category: Category | None = None
    project_id: str | None = None
    bank_account_id: str | None = None
    member_id: str | None = None
    type: TransactionType | None = None
    status: TransactionStatus | None = None
    start_date: DateLike | None = None
    end_date: DateLike | None = None

    def to_query(self) -> list[QueryFilter]:
        filters: list[QueryFilter] = []
        if self.category is not None:
            filters.append(QueryFilter.eq("category", self.category))
        if self.project_id:
            filters.append(QueryFilter.eq("project_id", self.project_id))
        if self.bank_account_id:
            filters.append(QueryFilter.eq("bank_account_id", self.bank_account_id))
        if self.member_id:
            filters.append(QueryFilter.eq("member_id", self.member_id))
        if self.type is not None:
            filters.append(QueryFilter.eq("type", self.type))
        if self.status is not None:
            filters.append(QueryFilter.eq("status", self.status))
        if self.start_date is not None:
            filters.append(QueryFilter.gte("date", to_iso(self.start_date)))
        if self.end_date is not None:
            filters.append(QueryFilter.lte("date", end_of_day_iso(self.end_date)))
        return filters


class TransactionStore:
    """거래 저장소

    Args:
        gateway: 문서 저장소
        splits: SplitLedger (분할 전파/삭제)
        inventory: InventorySynchronizer (재고 연결 동기화)
    """

    def __init__(
        self,
        gateway: IPersistenceGateway,
        splits: SplitLedger,
        inventory: InventorySynchronizer,
    ):
        self.gateway = gateway
        self.splits = splits
        self.inventory = inventory

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_by_id(self, transaction_id: str) -> Transaction | None:
        doc = await self.gateway.get(Collection.TRANSACTIONS, transaction_id)
        return Transaction.from_dict(doc) if doc else None

    async def require(self, transaction_id: str) -> Transaction:
        transaction = await self.get_by_id(transaction_id)
        if transaction is None:
            raise TransactionNotFound(transaction_id)
        return transaction

    async def list(self, filters: TransactionFilter | None = None) -> list[Transaction]:
        """거래 목록 (날짜 최신순)"""
        docs = await self.gateway.query(
            Collection.TRANSACTIONS,
            (filters or TransactionFilter()).to_query(),
            OrderBy("date", descending=True),
        )
        return [Transaction.from_dict(d) for d in docs]

    async def list_for_account(self, account_id: str, as_of: DateLike | None = None) -> list[Transaction]:
        """계좌 거래 목록 (기준일 이하, 날짜순)"""
        filters = [QueryFilter.eq("bank_account_id", account_id)]
        if as_of is not None:
            filters.append(QueryFilter.lte("date", end_of_day_iso(as_of)))
        docs = await self.gateway.query(Collection.TRANSACTIONS, filters, OrderBy("date"))
        return [Transaction.from_dict(d) for d in docs]

    async def get_by_category(self, category: Category) -> list[Transaction]:
        """카테고리 거래 + 해당 카테고리 분할을 가진 부모 거래"""
        direct = await self.list(TransactionFilter(category=category))
        seen = {t.id for t in direct}
        parents = [
            s.parent_transaction_id
            for s in await self.splits.find_by_category(category)
            if s.parent_transaction_id not in seen
        ]
        extra = await self._load_many(list(dict.fromkeys(parents)))
        return sorted(direct + extra, key=lambda t: t.date, reverse=True)

    async def get_project_transactions(self, project_id: str) -> list[Transaction]:
        """프로젝트 거래 + 해당 프로젝트 분할을 가진 부모 거래"""
        direct = await self.list(TransactionFilter(project_id=project_id))
        seen = {t.id for t in direct}
        parents = [
            s.parent_transaction_id
            for s in await self.splits.find_by_project(project_id)
            if s.parent_transaction_id not in seen
        ]
        extra = await self._load_many(list(dict.fromkeys(parents)))
        return sorted(direct + extra, key=lambda t: t.date, reverse=True)

    async def _load_many(self, ids: list[str]) -> list[Transaction]:
        if not ids:
            return []
        docs = await self.gateway.query(Collection.TRANSACTIONS, [QueryFilter.is_in("id", ids)])
        return [Transaction.from_dict(d) for d in docs]

    # -------------------------------------------------------------------------
    # 생성
    # -------------------------------------------------------------------------

    async def create(
        self,
        data: dict[str, Any],
        actor: str = Defaults.SYSTEM_ACTOR,
        allow_zero: bool = False,
    ) -> str:
        """거래 생성

        Args:
            data: 거래 필드 (date, description, amount, type, category 필수)
            actor: 작업자 (재고 이동 기록용)
            allow_zero: 금액 0 허용 (회비 면제 회원의 갱신 기록)

        Returns:
            생성된 거래 id
        """
        fields = {
            k: v for k, v in normalize_fields(data).items()
            if v is not None and k not in _MANAGED_FIELDS
        }
        for required in ("date", "description", "amount", "type", "category"):
            if required not in fields:
                raise ValidationError(f"Missing required field: {required}")

        amount = to_decimal(fields["amount"])
        if amount < 0 or (amount == 0 and not allow_zero):
            raise ValidationError("Transaction amount must be positive")
        if not Category(fields["category"]).is_real:
            raise ValidationError("Category may only be empty on a split transaction")

        any_link, complete_link = _link_state(fields)
        if any_link and not complete_link:
            raise ValidationError(
                "Inventory link requires inventory_link_id, inventory_variant and a positive inventory_quantity"
            )

        now = to_iso(now_utc())
        fields.setdefault("status", TransactionStatus.PENDING.value)
        fields["is_split"] = False
        fields["created_at"] = now
        fields["updated_at"] = now

        transaction = Transaction.from_dict({**fields, "id": ""})
        await self.inventory.validate_link(transaction)

        transaction_id = await self.gateway.create(Collection.TRANSACTIONS, fields)
        transaction.id = transaction_id
        logger.info(
            f"Transaction created: {transaction_id} {transaction.type.value} {transaction.amount}",
            extra={"category": transaction.category.value},
        )

        await self.inventory.on_create(transaction, actor)
        return transaction_id

    # -------------------------------------------------------------------------
    # 수정
    # -------------------------------------------------------------------------

    async def update(
        self,
        transaction_id: str,
        partial: dict[str, Any],
        actor: str = Defaults.SYSTEM_ACTOR,
    ) -> None:
        """거래 부분 수정

        Raises:
            TransactionNotFound: 거래 없음
            SplitCategoryConflict: 분할된 거래의 카테고리 변경
            SplitSumMismatch: 분할된 거래의 금액 변경
        """
        old = await self.require(transaction_id)
        patch = {k: v for k, v in normalize_fields(partial).items() if k not in _MANAGED_FIELDS}

        if "category" in patch:
            if old.is_split and patch["category"] != old.category.value:
                raise SplitCategoryConflict(
                    f"Transaction {transaction_id} is split; change split categories instead"
                )
            if patch["category"] is None or (not old.is_split and not Category(patch["category"]).is_real):
                raise ValidationError("Category may only be empty on a split transaction")

        if "amount" in patch:
            if patch["amount"] is None or to_decimal(patch["amount"]) <= 0:
                raise ValidationError("Transaction amount must be positive")
            new_amount = to_decimal(patch["amount"])
            if old.is_split and new_amount != old.amount:
                split_total = await self.splits.split_total(transaction_id)
                if not amounts_match(split_total, new_amount):
                    raise SplitSumMismatch(split_total=split_total, parent_amount=new_amount)

        for required in ("date", "description", "type"):
            if required in patch and patch[required] is None:
                raise ValidationError(f"Field cannot be cleared: {required}")

        merged = {**old.to_dict(), **{k: v for k, v in patch.items() if v is not None}}
        for key, value in patch.items():
            if value is None:
                merged.pop(key, None)

        any_link, complete_link = _link_state(merged)
        if any_link and not complete_link:
            if old.has_inventory_link:
                # 연결 해제: 남은 연결 필드도 함께 제거
                for key in LINK_FIELDS:
                    patch[key] = None
                    merged.pop(key, None)
            else:
                raise ValidationError(
                    "Inventory link requires inventory_link_id, inventory_variant and a positive inventory_quantity"
                )

        new = Transaction.from_dict({**merged, "id": transaction_id})
        await self.inventory.validate_link(new)

        patch["updated_at"] = to_iso(now_utc())
        await self.gateway.update(Collection.TRANSACTIONS, transaction_id, patch)

        if old.is_split and new.type != old.type:
            await self.splits.propagate_type(transaction_id, new.type)

        await self.inventory.on_update(old, new, actor)

    # -------------------------------------------------------------------------
    # 삭제
    # -------------------------------------------------------------------------

    async def delete(self, transaction_id: str) -> None:
        """거래 삭제 (분할 → 재고 이동 → 거래 순)"""
        transaction = await self.require(transaction_id)

        if transaction.is_split:
            removed = await self.splits.delete_all_for_parent(transaction_id)
            logger.info(f"Deleted {removed} splits of {transaction_id}")

        await self.inventory.on_delete(transaction)
        await self.gateway.delete(Collection.TRANSACTIONS, transaction_id)
        logger.info(f"Transaction deleted: {transaction_id}")

    # -------------------------------------------------------------------------
    # 배치 (항목별 독립 처리)
    # -------------------------------------------------------------------------

    async def _batch(self, ids: list[str], operation) -> BatchResult:
        results = await asyncio.gather(*(operation(i) for i in ids), return_exceptions=True)
        errors = tuple(
            f"{item_id}: {result}"
            for item_id, result in zip(ids, results)
            if isinstance(result, Exception)
        )
        if errors:
            logger.warning(f"Batch finished with {len(errors)} failures out of {len(ids)}")
        return BatchResult(updated=len(ids) - len(errors), errors=errors)

    async def batch_update_category(self, transaction_ids: list[str], category: Category) -> BatchResult:
        async def one(transaction_id: str) -> None:
            await self.update(transaction_id, {"category": category})

        return await self._batch(transaction_ids, one)

    async def batch_delete(self, transaction_ids: list[str]) -> BatchResult:
        return await self._batch(transaction_ids, self.delete)
