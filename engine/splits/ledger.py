"""
Split Ledger

거래 분할(TransactionSplit) 관리.

불변식: 부모 거래의 분할 금액 합계 == 부모 금액 (±0.01)
- upsert: 검증 실패 시 쓰기 없음
- 분할 쓰기 후 부모 patch 실패 시 이번 호출의 분할 쓰기를 되돌림 (best-effort)
- 마지막 분할 삭제 시 original_category 복원 (Split → Unsplit)
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Awaitable, Callable

from adapters.interfaces import IPersistenceGateway
from adapters.models import OrderBy, QueryFilter
from core.constants import Defaults
from core.domain.models import Split, SplitInput, Transaction, TransactionSplit, Unsplit
from core.errors import (
    ParentNotFound,
    SplitNotFound,
    SplitSumMismatch,
    ValidationError,
)
from core.types import BatchResult, Category, Collection, TransactionStatus, TransactionType
from core.utils.money import amounts_match, money_str, to_decimal
from core.utils.timezone import now_utc, to_iso

logger = logging.getLogger(__name__)

UndoStep = Callable[[], Awaitable[None]]

# 분할 항목에서 직접 수정할 수 없는 필드
_IMMUTABLE_SPLIT_FIELDS = frozenset({"id", "parent_transaction_id", "type", "created_by", "created_at"})


def validate_split_sum(amounts: list[Decimal], parent_amount: Decimal) -> None:
    """분할 합계 검증

    Raises:
        SplitSumMismatch: 합계가 부모 금액과 0.01 초과 차이
    """
    total = sum(amounts, Decimal("0"))
    if not amounts_match(total, parent_amount):
        raise SplitSumMismatch(split_total=total, parent_amount=parent_amount)


def _require_real_category(category: Category | str) -> Category:
    category = Category(category)
    if not category.is_real:
        raise ValidationError("Split category must not be empty")
    return category


class SplitLedger:
    """분할 원장

    Args:
        gateway: 문서 저장소
    """

    def __init__(self, gateway: IPersistenceGateway):
        self.gateway = gateway

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def _load_parent(self, parent_id: str) -> Transaction:
        doc = await self.gateway.get(Collection.TRANSACTIONS, parent_id)
        if doc is None:
            raise ParentNotFound(parent_id)
        return Transaction.from_dict(doc)

    async def get_split(self, split_id: str) -> TransactionSplit | None:
        doc = await self.gateway.get(Collection.TRANSACTION_SPLITS, split_id)
        return TransactionSplit.from_dict(doc) if doc else None

    async def get_splits(self, parent_id: str) -> list[TransactionSplit]:
        """부모 거래의 분할 목록 (생성 순)"""
        docs = await self.gateway.query(
            Collection.TRANSACTION_SPLITS,
            [QueryFilter.eq("parent_transaction_id", parent_id)],
            OrderBy("created_at"),
        )
        return [TransactionSplit.from_dict(d) for d in docs]

    async def get_splits_for_parents(self, parent_ids: list[str]) -> dict[str, list[TransactionSplit]]:
        """여러 부모의 분할 목록 (단일 질의)"""
        if not parent_ids:
            return {}
        docs = await self.gateway.query(
            Collection.TRANSACTION_SPLITS,
            [QueryFilter.is_in("parent_transaction_id", parent_ids)],
            OrderBy("created_at"),
        )
        result: dict[str, list[TransactionSplit]] = {pid: [] for pid in parent_ids}
        for doc in docs:
            split = TransactionSplit.from_dict(doc)
            result.setdefault(split.parent_transaction_id, []).append(split)
        return result

    async def find_by_category(self, category: Category) -> list[TransactionSplit]:
        docs = await self.gateway.query(
            Collection.TRANSACTION_SPLITS, [QueryFilter.eq("category", category)]
        )
        return [TransactionSplit.from_dict(d) for d in docs]

    async def find_by_project(self, project_id: str) -> list[TransactionSplit]:
        docs = await self.gateway.query(
            Collection.TRANSACTION_SPLITS, [QueryFilter.eq("project_id", project_id)]
        )
        return [TransactionSplit.from_dict(d) for d in docs]

    # -------------------------------------------------------------------------
    # upsert
    # -------------------------------------------------------------------------

    async def upsert_splits(
        self,
        parent_id: str,
        splits: list[SplitInput],
        actor: str = Defaults.SYSTEM_ACTOR,
    ) -> list[str]:
        """분할 일괄 생성/수정/삭제

        1. 부모 조회 (ParentNotFound)
        2. 합계 검증 (SplitSumMismatch, 쓰기 없음)
        3. id 기준 diff: 기존 id → 수정, id 없음 → 생성, 누락된 기존 → 삭제
        4. 부모 patch: is_split, split_ids, original_category(최초 1회), category/project_id/purpose = ""

        Returns:
            최종 분할 id 목록 (입력 순서)
        """
        parent = await self._load_parent(parent_id)

        categories = [_require_real_category(s.category) for s in splits]
        amounts = [to_decimal(s.amount) for s in splits]
        if any(a <= 0 for a in amounts):
            raise ValidationError("Split amounts must be positive")
        validate_split_sum(amounts, parent.amount)

        existing = {s.id: s for s in await self.get_splits(parent_id)}
        for s in splits:
            if s.id and s.id not in existing:
                raise SplitNotFound(s.id)

        keep_ids = {s.id for s in splits if s.id}
        now = to_iso(now_utc())
        undo: list[UndoStep] = []
        final_ids: list[str] = []

        try:
            for split_input, category, amount in zip(splits, categories, amounts):
                fields = self._split_fields(split_input, category, amount)
                if split_input.id:
                    before = existing[split_input.id]
                    await self.gateway.update(
                        Collection.TRANSACTION_SPLITS,
                        split_input.id,
                        {**fields, "updated_at": now},
                    )
                    undo.append(self._restore_step(before, list(fields)))
                    final_ids.append(split_input.id)
                else:
                    record = {
                        **fields,
                        "parent_transaction_id": parent_id,
                        "type": parent.type.value,
                        "status": parent.status.value,
                        "created_by": actor,
                        "created_at": now,
                        "updated_at": now,
                    }
                    new_id = await self.gateway.create(Collection.TRANSACTION_SPLITS, record)
                    undo.append(self._delete_step(new_id))
                    final_ids.append(new_id)

            for split_id, before in existing.items():
                if split_id not in keep_ids:
                    await self.gateway.delete(Collection.TRANSACTION_SPLITS, split_id)
                    undo.append(self._recreate_step(before))

            await self.gateway.update(
                Collection.TRANSACTIONS,
                parent_id,
                self._parent_patch(parent, final_ids, now),
            )
        except Exception as e:
            logger.error(
                f"Split upsert failed, undoing {len(undo)} split writes: {e}",
                extra={"parent_id": parent_id},
            )
            await self._run_undo(undo)
            raise

        logger.info(
            f"Splits upserted: parent={parent_id}, count={len(final_ids)}",
            extra={"actor": actor},
        )
        return final_ids

    @staticmethod
    def _split_fields(split: SplitInput, category: Category, amount: Decimal) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "category": category.value,
            "amount": money_str(amount),
            "description": split.description,
            "project_id": split.project_id,
            "member_id": split.member_id,
            "purpose": split.purpose,
            "payment_request_id": split.payment_request_id,
            "year": split.year,
        }
        return fields

    @staticmethod
    def _parent_patch(parent: Transaction, split_ids: list[str], now: str) -> dict[str, Any]:
        state = parent.split_state
        if isinstance(state, Split):
            # 이미 분할된 거래: 최초 카테고리 유지
            new_state = state.with_ids(split_ids)
        else:
            new_state = Split(original_category=state.category, split_ids=tuple(split_ids))

        return {
            "is_split": True,
            "split_ids": list(new_state.split_ids),
            "original_category": new_state.original_category.value,
            "category": Category.UNSET.value,
            "project_id": "",
            "purpose": "",
            "updated_at": now,
        }

    def _restore_step(self, before: TransactionSplit, touched: list[str]) -> UndoStep:
        # 이번 호출에서 새로 채운 필드는 None(삭제)으로 되돌림
        patch = {**{key: None for key in touched}, **before.to_dict()}

        async def step() -> None:
            await self.gateway.update(Collection.TRANSACTION_SPLITS, before.id, patch)
        return step

    def _delete_step(self, split_id: str) -> UndoStep:
        async def step() -> None:
            await self.gateway.delete(Collection.TRANSACTION_SPLITS, split_id)
        return step

    def _recreate_step(self, before: TransactionSplit) -> UndoStep:
        async def step() -> None:
            await self.gateway.create(Collection.TRANSACTION_SPLITS, {**before.to_dict(), "id": before.id})
        return step

    async def _run_undo(self, undo: list[UndoStep]) -> None:
        for step in reversed(undo):
            try:
                await step()
            except Exception as e:
                # 보상 실패는 기록만 남기고 원래 예외를 전달
                logger.error(f"Split undo step failed: {e}")

    # -------------------------------------------------------------------------
    # 단건 수정/삭제
    # -------------------------------------------------------------------------

    async def update_split(self, split_id: str, partial: dict[str, Any]) -> None:
        """분할 수정

        금액 변경 시 부모 전체 합계를 다시 검증 (위반 시 쓰기 없음).
        """
        split = await self.get_split(split_id)
        if split is None:
            raise SplitNotFound(split_id)

        patch = {k: v for k, v in partial.items() if k not in _IMMUTABLE_SPLIT_FIELDS}

        if "category" in patch:
            patch["category"] = _require_real_category(patch["category"]).value

        if "amount" in patch:
            new_amount = to_decimal(patch["amount"])
            if new_amount <= 0:
                raise ValidationError("Split amounts must be positive")
            if new_amount != split.amount:
                parent = await self._load_parent(split.parent_transaction_id)
                siblings = await self.get_splits(split.parent_transaction_id)
                amounts = [s.amount for s in siblings if s.id != split_id] + [new_amount]
                validate_split_sum(amounts, parent.amount)
            patch["amount"] = money_str(new_amount)

        if "status" in patch and patch["status"] is not None:
            patch["status"] = TransactionStatus(patch["status"]).value

        patch["updated_at"] = to_iso(now_utc())
        await self.gateway.update(Collection.TRANSACTION_SPLITS, split_id, patch)

    async def delete_split(self, split_id: str) -> None:
        """분할 삭제

        남은 분할이 없으면 부모를 원래 카테고리로 복원.
        """
        split = await self.get_split(split_id)
        if split is None:
            raise SplitNotFound(split_id)

        await self.gateway.delete(Collection.TRANSACTION_SPLITS, split_id)

        parent_doc = await self.gateway.get(Collection.TRANSACTIONS, split.parent_transaction_id)
        if parent_doc is None:
            logger.warning(f"Orphan split deleted: {split_id}")
            return

        parent = Transaction.from_dict(parent_doc)
        state = parent.split_state
        now = to_iso(now_utc())

        if not isinstance(state, Split):
            return

        remaining = [sid for sid in state.split_ids if sid != split_id]
        if remaining:
            patch = {"split_ids": remaining, "updated_at": now}
        else:
            restored: Unsplit = state.restore()
            patch = {
                "category": restored.category.value,
                "is_split": False,
                "split_ids": None,
                "original_category": None,
                "updated_at": now,
            }
            logger.info(f"Last split removed, category restored: {parent.id} → {restored.category.value}")

        await self.gateway.update(Collection.TRANSACTIONS, parent.id, patch)

    async def delete_all_for_parent(self, parent_id: str) -> int:
        """부모 삭제 전 분할 전체 삭제 (부모 복원 없음)"""
        splits = await self.get_splits(parent_id)
        for split in splits:
            await self.gateway.delete(Collection.TRANSACTION_SPLITS, split.id)
        return len(splits)

    # -------------------------------------------------------------------------
    # 부모 변경 전파
    # -------------------------------------------------------------------------

    async def propagate_type(self, parent_id: str, transaction_type: TransactionType) -> None:
        """부모 거래 유형 변경을 분할에 반영"""
        now = to_iso(now_utc())
        for split in await self.get_splits(parent_id):
            await self.gateway.update(
                Collection.TRANSACTION_SPLITS,
                split.id,
                {"type": transaction_type.value, "updated_at": now},
            )

    async def propagate_status(
        self,
        parent_id: str,
        status: TransactionStatus,
        reconciled_at: str | None = None,
        reconciled_by: str | None = None,
    ) -> None:
        """부모 거래 상태를 분할에 반영 (정산 시)"""
        patch: dict[str, Any] = {"status": status.value}
        if reconciled_at:
            patch["reconciled_at"] = reconciled_at
        if reconciled_by:
            patch["reconciled_by"] = reconciled_by
        for split in await self.get_splits(parent_id):
            await self.gateway.update(Collection.TRANSACTION_SPLITS, split.id, patch)

    async def split_total(self, parent_id: str) -> Decimal:
        splits = await self.get_splits(parent_id)
        return sum((s.amount for s in splits), Decimal("0"))

    # -------------------------------------------------------------------------
    # 배치
    # -------------------------------------------------------------------------

    async def batch_update_category(self, split_ids: list[str], category: Category) -> BatchResult:
        """분할 카테고리 일괄 변경 (항목별 독립 처리)"""
        category = _require_real_category(category)

        async def one(split_id: str) -> None:
            await self.update_split(split_id, {"category": category})

        results = await asyncio.gather(*(one(sid) for sid in split_ids), return_exceptions=True)
        errors = tuple(
            f"{sid}: {result}"
            for sid, result in zip(split_ids, results)
            if isinstance(result, Exception)
        )
        return BatchResult(updated=len(split_ids) - len(errors), errors=errors)
