"""
SplitLedger 테스트

분할 합계 검증, upsert diff, 부모 patch, 되돌리기, 분할 해제
"""

from decimal import Decimal

import pytest

from adapters.mock import InMemoryGateway
from core.domain.models import SplitInput
from core.errors import (
    ParentNotFound,
    SplitCategoryConflict,
    SplitNotFound,
    SplitSumMismatch,
    GatewayError,
    ValidationError,
)
from core.types import Category, Collection, TransactionType
from engine.bootstrap import Ledger
from engine.splits.ledger import validate_split_sum


def _splits(*pairs: tuple[str, Category]) -> list[SplitInput]:
    return [SplitInput(category=c, amount=Decimal(a)) for a, c in pairs]


class TestValidateSplitSum:
    """합계 검증 (±0.01)"""

    def test_exact_sum(self) -> None:
        validate_split_sum([Decimal("40"), Decimal("60")], Decimal("100"))

    def test_within_tolerance(self) -> None:
        validate_split_sum([Decimal("33.33"), Decimal("33.33"), Decimal("33.33")], Decimal("100"))

    def test_outside_tolerance(self) -> None:
        with pytest.raises(SplitSumMismatch) as exc:
            validate_split_sum([Decimal("40"), Decimal("70")], Decimal("100"))

        assert exc.value.split_total == Decimal("110")
        assert exc.value.parent_amount == Decimal("100")


class TestUpsertSplits:
    """create_splits (upsert)"""

    @pytest.mark.asyncio
    async def test_sum_mismatch_writes_nothing(
        self, ledger: Ledger, gateway: InMemoryGateway, make_tx
    ) -> None:
        """40 + 70 ≠ 100 → 거부, 분할 기록 없음"""
        parent_id = await make_tx(amount="100")

        with pytest.raises(SplitSumMismatch):
            await ledger.create_splits(
                parent_id,
                _splits(("40", Category.MEMBERSHIP), ("70", Category.ADMINISTRATIVE)),
            )

        assert gateway.count(Collection.TRANSACTION_SPLITS) == 0
        parent = await ledger.get_transaction_by_id(parent_id)
        assert parent.is_split is False
        assert parent.category == Category.PROJECTS

    @pytest.mark.asyncio
    async def test_accepted_marks_parent_split(self, ledger: Ledger, make_tx) -> None:
        """40 + 60 = 100 → 부모 is_split, category 빈 값"""
        parent_id = await make_tx(amount="100", project_id="proj-1", purpose="Gala")

        ids = await ledger.create_splits(
            parent_id,
            _splits(("40", Category.MEMBERSHIP), ("60", Category.ADMINISTRATIVE)),
        )

        parent = await ledger.get_transaction_by_id(parent_id)
        assert parent.is_split is True
        assert parent.category == Category.UNSET
        assert parent.original_category == Category.PROJECTS
        assert parent.split_ids == ids
        assert parent.project_id == ""
        assert parent.purpose == ""

        splits = await ledger.get_splits(parent_id)
        assert sum(s.amount for s in splits) == Decimal("100")
        assert all(s.type == TransactionType.INCOME for s in splits)

    @pytest.mark.asyncio
    async def test_resplit_diffs_by_id(self, ledger: Ledger, gateway: InMemoryGateway, make_tx) -> None:
        """id 있는 항목 수정, id 없는 항목 생성, 누락 항목 삭제"""
        parent_id = await make_tx(amount="100")
        first, second = await ledger.create_splits(
            parent_id,
            _splits(("40", Category.MEMBERSHIP), ("60", Category.ADMINISTRATIVE)),
        )

        ids = await ledger.create_splits(
            parent_id,
            [
                SplitInput(id=first, category=Category.MEMBERSHIP, amount=Decimal("50")),
                SplitInput(category=Category.PROJECTS, amount=Decimal("50")),
            ],
        )

        assert ids[0] == first
        assert second not in ids
        assert gateway.count(Collection.TRANSACTION_SPLITS) == 2

        parent = await ledger.get_transaction_by_id(parent_id)
        # 최초 카테고리 유지
        assert parent.original_category == Category.PROJECTS
        assert parent.split_ids == ids

    @pytest.mark.asyncio
    async def test_sum_holds_after_every_upsert(self, ledger: Ledger, make_tx) -> None:
        parent_id = await make_tx(amount="250.50")
        rounds = [
            _splits(("100.25", Category.MEMBERSHIP), ("150.25", Category.PROJECTS)),
            _splits(("250.50", Category.ADMINISTRATIVE)),
            _splits(("50", Category.MEMBERSHIP), ("50", Category.PROJECTS), ("150.50", Category.ADMINISTRATIVE)),
        ]

        for splits in rounds:
            await ledger.create_splits(parent_id, splits)
            current = await ledger.get_splits(parent_id)
            assert abs(sum(s.amount for s in current) - Decimal("250.50")) <= Decimal("0.01")

    @pytest.mark.asyncio
    async def test_missing_parent(self, ledger: Ledger) -> None:
        with pytest.raises(ParentNotFound):
            await ledger.create_splits("nope", _splits(("10", Category.MEMBERSHIP)))

    @pytest.mark.asyncio
    async def test_unknown_split_id(self, ledger: Ledger, make_tx) -> None:
        parent_id = await make_tx(amount="10")

        with pytest.raises(SplitNotFound):
            await ledger.create_splits(
                parent_id,
                [SplitInput(id="ghost", category=Category.MEMBERSHIP, amount=Decimal("10"))],
            )

    @pytest.mark.asyncio
    async def test_empty_category_rejected(self, ledger: Ledger, make_tx) -> None:
        parent_id = await make_tx(amount="10")

        with pytest.raises(ValidationError):
            await ledger.create_splits(parent_id, _splits(("10", Category.UNSET)))

    @pytest.mark.asyncio
    async def test_parent_patch_failure_undoes_split_writes(
        self, ledger: Ledger, gateway: InMemoryGateway, make_tx
    ) -> None:
        """부모 patch 실패 시 이번 호출의 생성/수정/삭제를 되돌림"""
        parent_id = await make_tx(amount="100")
        keep, drop = await ledger.create_splits(
            parent_id,
            _splits(("40", Category.MEMBERSHIP), ("60", Category.ADMINISTRATIVE)),
        )

        gateway.fail_next("update", Collection.TRANSACTIONS)
        with pytest.raises(GatewayError):
            await ledger.create_splits(
                parent_id,
                [
                    SplitInput(id=keep, category=Category.PROJECTS, amount=Decimal("70"), description="moved"),
                    SplitInput(category=Category.MEMBERSHIP, amount=Decimal("30")),
                ],
            )

        splits = {s.id: s for s in await ledger.get_splits(parent_id)}
        assert set(splits) == {keep, drop}
        assert splits[keep].category == Category.MEMBERSHIP
        assert splits[keep].amount == Decimal("40")
        assert splits[keep].description == ""
        assert splits[drop].amount == Decimal("60")

        parent = await ledger.get_transaction_by_id(parent_id)
        assert parent.split_ids == [keep, drop]


class TestSplitMaintenance:
    """분할 수정/삭제"""

    @pytest.mark.asyncio
    async def test_update_split_amount_must_keep_sum(self, ledger: Ledger, make_tx) -> None:
        parent_id = await make_tx(amount="100")
        first, _ = await ledger.create_splits(
            parent_id,
            _splits(("40", Category.MEMBERSHIP), ("60", Category.ADMINISTRATIVE)),
        )

        with pytest.raises(SplitSumMismatch):
            await ledger.update_split(first, {"amount": "45"})

        splits = await ledger.get_splits(parent_id)
        assert splits[0].amount == Decimal("40")

    @pytest.mark.asyncio
    async def test_update_split_description(self, ledger: Ledger, make_tx) -> None:
        parent_id = await make_tx(amount="100")
        first, _ = await ledger.create_splits(
            parent_id,
            _splits(("40", Category.MEMBERSHIP), ("60", Category.ADMINISTRATIVE)),
        )

        await ledger.update_split(first, {"description": "Dues share", "category": Category.PROJECTS})

        split = (await ledger.get_splits(parent_id))[0]
        assert split.description == "Dues share"
        assert split.category == Category.PROJECTS

    @pytest.mark.asyncio
    async def test_delete_last_split_restores_category(self, ledger: Ledger, make_tx) -> None:
        parent_id = await make_tx(amount="100", category=Category.ADMINISTRATIVE)
        first, second = await ledger.create_splits(
            parent_id,
            _splits(("40", Category.MEMBERSHIP), ("60", Category.PROJECTS)),
        )

        await ledger.delete_split(first)
        parent = await ledger.get_transaction_by_id(parent_id)
        assert parent.is_split is True
        assert parent.split_ids == [second]

        await ledger.delete_split(second)
        parent = await ledger.get_transaction_by_id(parent_id)
        assert parent.is_split is False
        assert parent.category == Category.ADMINISTRATIVE
        assert parent.original_category is None
        assert parent.split_ids == []

    @pytest.mark.asyncio
    async def test_delete_unknown_split(self, ledger: Ledger) -> None:
        with pytest.raises(SplitNotFound):
            await ledger.delete_split("ghost")

    @pytest.mark.asyncio
    async def test_parent_category_change_conflicts(self, ledger: Ledger, make_tx) -> None:
        parent_id = await make_tx(amount="100")
        await ledger.create_splits(parent_id, _splits(("100", Category.MEMBERSHIP)))

        with pytest.raises(SplitCategoryConflict):
            await ledger.update_transaction(parent_id, {"category": Category.ADMINISTRATIVE})

    @pytest.mark.asyncio
    async def test_parent_amount_change_mismatch(self, ledger: Ledger, make_tx) -> None:
        parent_id = await make_tx(amount="100")
        await ledger.create_splits(parent_id, _splits(("100", Category.MEMBERSHIP)))

        with pytest.raises(SplitSumMismatch):
            await ledger.update_transaction(parent_id, {"amount": "120"})

    @pytest.mark.asyncio
    async def test_type_change_propagates(self, ledger: Ledger, make_tx) -> None:
        parent_id = await make_tx(amount="100")
        await ledger.create_splits(
            parent_id,
            _splits(("30", Category.MEMBERSHIP), ("70", Category.PROJECTS)),
        )

        await ledger.update_transaction(parent_id, {"type": TransactionType.EXPENSE})

        splits = await ledger.get_splits(parent_id)
        assert {s.type for s in splits} == {TransactionType.EXPENSE}

    @pytest.mark.asyncio
    async def test_batch_update_split_category(self, ledger: Ledger, make_tx) -> None:
        parent_id = await make_tx(amount="100")
        ids = await ledger.create_splits(
            parent_id,
            _splits(("30", Category.MEMBERSHIP), ("70", Category.PROJECTS)),
        )

        result = await ledger.batch_update_split_category(ids + ["ghost"], Category.ADMINISTRATIVE)

        assert result.updated == 2
        assert result.failed == 1
        assert "ghost" in result.errors[0]
        splits = await ledger.get_splits(parent_id)
        assert {s.category for s in splits} == {Category.ADMINISTRATIVE}
