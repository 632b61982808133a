"""
TransactionStore 테스트

생성/수정/삭제 규칙, 목록 필터, 카테고리/프로젝트 조회, 배치 작업
"""

from decimal import Decimal

import pytest

from adapters.mock import InMemoryGateway
from core.domain.models import SplitInput
from core.errors import TransactionNotFound, ValidationError
from core.types import Category, Collection, TransactionStatus, TransactionType
from engine.bootstrap import Ledger
from engine.transactions.store import TransactionFilter, normalize_fields


class TestNormalizeFields:
    """입력 값 정규화"""

    def test_enums_and_amount(self) -> None:
        fields = normalize_fields({
            "amount": Decimal("12.50"),
            "type": TransactionType.EXPENSE,
            "category": "Membership",
            "inventory_quantity": "3",
            "purpose": None,
        })

        assert fields == {
            "amount": "12.50",
            "type": "Expense",
            "category": "Membership",
            "inventory_quantity": 3,
            "purpose": None,
        }

    def test_date_is_iso(self) -> None:
        fields = normalize_fields({"date": "2026-03-01"})
        assert fields["date"].startswith("2026-03-01T00:00:00")


class TestCreate:
    """거래 생성"""

    @pytest.mark.asyncio
    async def test_defaults(self, ledger: Ledger, make_tx) -> None:
        tx_id = await make_tx(amount="45.00")

        tx = await ledger.get_transaction_by_id(tx_id)
        assert tx.amount == Decimal("45.00")
        assert tx.status == TransactionStatus.PENDING
        assert tx.is_split is False
        assert tx.created_at is not None

    @pytest.mark.asyncio
    async def test_none_fields_are_not_stored(self, ledger: Ledger, gateway: InMemoryGateway, make_tx) -> None:
        tx_id = await make_tx(project_id=None, purpose=None)

        doc = await gateway.get(Collection.TRANSACTIONS, tx_id)
        assert "project_id" not in doc
        assert "purpose" not in doc

    @pytest.mark.asyncio
    async def test_managed_fields_ignored(self, ledger: Ledger, make_tx) -> None:
        tx_id = await make_tx(is_split=True, split_ids=["x"], original_category="Membership")

        tx = await ledger.get_transaction_by_id(tx_id)
        assert tx.is_split is False
        assert tx.split_ids == []
        assert tx.original_category is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["date", "description", "amount", "type", "category"])
    async def test_required_fields(self, ledger: Ledger, make_tx, field: str) -> None:
        with pytest.raises(ValidationError, match=field):
            await make_tx(**{field: None})

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, make_tx) -> None:
        with pytest.raises(ValidationError):
            await make_tx(amount="0")
        with pytest.raises(ValidationError):
            await make_tx(amount="-5")

    @pytest.mark.asyncio
    async def test_empty_category_rejected(self, make_tx) -> None:
        with pytest.raises(ValidationError):
            await make_tx(category=Category.UNSET)

    @pytest.mark.asyncio
    async def test_partial_inventory_link_rejected(self, ledger: Ledger, gateway: InMemoryGateway, make_tx) -> None:
        with pytest.raises(ValidationError, match="Inventory link"):
            await make_tx(inventory_link_id="item-1", inventory_quantity=2)

        assert gateway.count(Collection.TRANSACTIONS) == 0


class TestUpdate:
    """거래 수정"""

    @pytest.mark.asyncio
    async def test_partial_update(self, ledger: Ledger, make_tx) -> None:
        tx_id = await make_tx(purpose="Gala dinner")

        await ledger.update_transaction(tx_id, {"amount": "150", "status": TransactionStatus.CLEARED})

        tx = await ledger.get_transaction_by_id(tx_id)
        assert tx.amount == Decimal("150")
        assert tx.status == TransactionStatus.CLEARED
        assert tx.purpose == "Gala dinner"

    @pytest.mark.asyncio
    async def test_null_clears_optional_field(self, ledger: Ledger, make_tx) -> None:
        tx_id = await make_tx(project_id="proj-1")

        await ledger.update_transaction(tx_id, {"project_id": None})

        tx = await ledger.get_transaction_by_id(tx_id)
        assert tx.project_id is None

    @pytest.mark.asyncio
    async def test_required_field_cannot_be_cleared(self, ledger: Ledger, make_tx) -> None:
        tx_id = await make_tx()

        with pytest.raises(ValidationError):
            await ledger.update_transaction(tx_id, {"description": None})

    @pytest.mark.asyncio
    async def test_missing_transaction(self, ledger: Ledger) -> None:
        with pytest.raises(TransactionNotFound):
            await ledger.update_transaction("ghost", {"amount": "1"})


class TestDelete:
    """거래 삭제 (분할 → 재고 → 거래)"""

    @pytest.mark.asyncio
    async def test_cascades_splits(self, ledger: Ledger, gateway: InMemoryGateway, make_tx) -> None:
        parent_id = await make_tx(amount="100")
        await ledger.create_splits(
            parent_id,
            [
                SplitInput(category=Category.MEMBERSHIP, amount=Decimal("40")),
                SplitInput(category=Category.PROJECTS, amount=Decimal("60")),
            ],
        )

        await ledger.delete_transaction(parent_id)

        assert gateway.count(Collection.TRANSACTIONS) == 0
        assert gateway.count(Collection.TRANSACTION_SPLITS) == 0

    @pytest.mark.asyncio
    async def test_missing_transaction(self, ledger: Ledger) -> None:
        with pytest.raises(TransactionNotFound):
            await ledger.delete_transaction("ghost")


class TestQueries:
    """목록/카테고리/프로젝트 조회"""

    @pytest.mark.asyncio
    async def test_list_newest_first_with_filters(self, ledger: Ledger, make_tx) -> None:
        await make_tx(date="2026-01-10", description="Jan", bank_account_id="acc-1")
        await make_tx(date="2026-02-10", description="Feb", bank_account_id="acc-1")
        await make_tx(date="2026-03-10", description="Mar", bank_account_id="acc-2")

        all_tx = await ledger.get_all_transactions()
        assert [t.description for t in all_tx] == ["Mar", "Feb", "Jan"]

        acc_1 = await ledger.get_all_transactions(TransactionFilter(bank_account_id="acc-1"))
        assert [t.description for t in acc_1] == ["Feb", "Jan"]

    @pytest.mark.asyncio
    async def test_date_range_end_is_inclusive(self, ledger: Ledger, make_tx) -> None:
        await make_tx(date="2026-02-28T18:30:00+00:00", description="late")
        await make_tx(date="2026-03-01", description="next")

        found = await ledger.get_all_transactions(
            TransactionFilter(start_date="2026-02-01", end_date="2026-02-28")
        )
        assert [t.description for t in found] == ["late"]

    @pytest.mark.asyncio
    async def test_by_category_includes_split_parents(self, ledger: Ledger, make_tx) -> None:
        direct = await make_tx(category=Category.MEMBERSHIP, date="2026-01-01")
        parent = await make_tx(amount="100", date="2026-02-01")
        await make_tx(category=Category.ADMINISTRATIVE)
        await ledger.create_splits(
            parent,
            [
                SplitInput(category=Category.MEMBERSHIP, amount=Decimal("30")),
                SplitInput(category=Category.PROJECTS, amount=Decimal("70")),
            ],
        )

        found = await ledger.get_transactions_by_category(Category.MEMBERSHIP)

        assert [t.id for t in found] == [parent, direct]

    @pytest.mark.asyncio
    async def test_project_transactions_include_split_parents(self, ledger: Ledger, make_tx) -> None:
        direct = await make_tx(project_id="gala", date="2026-01-01")
        parent = await make_tx(amount="100", date="2026-02-01")
        await ledger.create_splits(
            parent,
            [
                SplitInput(category=Category.PROJECTS, amount=Decimal("100"), project_id="gala"),
            ],
        )

        found = await ledger.get_project_transactions("gala")

        assert {t.id for t in found} == {direct, parent}


class TestBatch:
    """배치 작업 (항목별 독립)"""

    @pytest.mark.asyncio
    async def test_batch_category_collects_errors(self, ledger: Ledger, make_tx) -> None:
        ok = await make_tx()
        split_parent = await make_tx(amount="10")
        await ledger.create_splits(
            split_parent, [SplitInput(category=Category.MEMBERSHIP, amount=Decimal("10"))]
        )

        result = await ledger.batch_update_transaction_category(
            [ok, split_parent, "ghost"], Category.ADMINISTRATIVE
        )

        assert result.updated == 1
        assert result.failed == 2
        assert (await ledger.get_transaction_by_id(ok)).category == Category.ADMINISTRATIVE

    @pytest.mark.asyncio
    async def test_batch_delete(self, ledger: Ledger, gateway: InMemoryGateway, make_tx) -> None:
        ids = [await make_tx(), await make_tx()]

        result = await ledger.batch_delete_transactions(ids + ["ghost"])

        assert result.updated == 2
        assert result.failed == 1
        assert gateway.count(Collection.TRANSACTIONS) == 0
