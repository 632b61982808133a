"""
Reconciler / DiscrepancyDetector 테스트

잔고 불일치, 중복 감지, 정산 상태 전이, 이력
"""

from decimal import Decimal

import pytest

from adapters.mock import InMemoryGateway
from core.domain.models import SplitInput, Transaction
from core.errors import AccountNotFound
from core.types import (
    Bucket,
    Category,
    Collection,
    DiscrepancyType,
    ReconciliationStatus,
    TransactionStatus,
    TransactionType,
)
from engine.bootstrap import Ledger
from engine.reconciler.detector import DiscrepancyDetector


def _tx(tx_id: str, status: TransactionStatus = TransactionStatus.PENDING) -> Transaction:
    return Transaction(
        id=tx_id,
        date="2026-03-01T00:00:00.000000+00:00",
        description="Hall rental",
        amount=Decimal("250"),
        type=TransactionType.EXPENSE,
        category=Category.PROJECTS,
        status=status,
    )


class TestDiscrepancyDetector:
    """순수 감지 로직"""

    def test_amount_within_tolerance(self) -> None:
        detector = DiscrepancyDetector()

        assert detector.detect_amount_mismatch(Decimal("1300.00"), Decimal("1300.01")) is None

    def test_amount_mismatch(self) -> None:
        detector = DiscrepancyDetector()

        found = detector.detect_amount_mismatch(Decimal("1300"), Decimal("1250"))

        assert found.type == DiscrepancyType.AMOUNT_MISMATCH
        assert found.expected_amount == Decimal("1250")
        assert found.actual_amount == Decimal("1300")
        assert "Difference: 50" in found.description

    def test_duplicates_report_each_member(self) -> None:
        detector = DiscrepancyDetector()

        found = detector.detect_duplicates([_tx("a"), _tx("b"), _tx("c")])

        assert [d.transaction_id for d in found] == ["a", "b", "c"]
        assert all(d.type == DiscrepancyType.DUPLICATE for d in found)

    def test_reconciled_transactions_ignored(self) -> None:
        detector = DiscrepancyDetector()

        found = detector.detect_duplicates([_tx("a"), _tx("b", TransactionStatus.RECONCILED)])

        assert found == []


class TestReconcile:
    """정산 실행"""

    @pytest.fixture
    def seed(self, ledger: Ledger, account_id: str, make_tx):
        async def run() -> list[str]:
            return [
                await make_tx(amount="500", bank_account_id=account_id, date="2026-03-01"),
                await make_tx(
                    amount="200", type=TransactionType.EXPENSE, category=Category.ADMINISTRATIVE,
                    bank_account_id=account_id, date="2026-03-05",
                ),
            ]
        return run

    @pytest.mark.asyncio
    async def test_matching_statement_completes(self, ledger: Ledger, account_id: str, seed) -> None:
        """명세서 1300 = 시스템 1300 → completed, 거래 Reconciled"""
        tx_ids = await seed()

        record_id = await ledger.reconcile_account(account_id, Decimal("1300"), "2026-03-31", actor="treasurer")

        record = (await ledger.get_reconciliation_history(account_id))[0]
        assert record.id == record_id
        assert record.status == ReconciliationStatus.COMPLETED
        assert record.discrepancies == ()
        assert record.system_balance == Decimal("1300")
        for tx_id in tx_ids:
            tx = await ledger.get_transaction_by_id(tx_id)
            assert tx.status == TransactionStatus.RECONCILED
            assert tx.reconciled_by == "treasurer"

        account = await ledger.get_bank_account(account_id)
        assert account.display_balance == Decimal("1300")
        assert account.last_reconciled.startswith("2026-03-31")

    @pytest.mark.asyncio
    async def test_mismatch_stays_in_progress(self, ledger: Ledger, account_id: str, seed) -> None:
        """명세서 1250 → amount_mismatch 1건, 거래 상태 변경 없음"""
        tx_ids = await seed()

        await ledger.reconcile_account(account_id, Decimal("1250"), "2026-03-31")

        record = (await ledger.get_reconciliation_history(account_id))[0]
        assert record.status == ReconciliationStatus.IN_PROGRESS
        assert [d.type for d in record.discrepancies] == [DiscrepancyType.AMOUNT_MISMATCH]
        for tx_id in tx_ids:
            assert (await ledger.get_transaction_by_id(tx_id)).status == TransactionStatus.PENDING

    @pytest.mark.asyncio
    async def test_repeat_gives_same_result(self, ledger: Ledger, account_id: str, seed, make_tx) -> None:
        await seed()
        await make_tx(amount="20", description="Coffee", bank_account_id=account_id, date="2026-03-10")
        await make_tx(amount="20", description="Coffee", bank_account_id=account_id, date="2026-03-10")

        await ledger.reconcile_account(account_id, Decimal("1250"), "2026-03-31")
        await ledger.reconcile_account(account_id, Decimal("1250"), "2026-03-31")

        first, second = await ledger.get_reconciliation_history(account_id)

        def shape(record):
            return sorted(
                (d.type.value, d.transaction_id or "", d.expected_amount, d.actual_amount)
                for d in record.discrepancies
            )

        assert first.system_balance == second.system_balance
        assert shape(first) == shape(second)
        assert len(first.discrepancies) == 3

    @pytest.mark.asyncio
    async def test_split_status_propagated(self, ledger: Ledger, account_id: str, make_tx) -> None:
        parent = await make_tx(amount="100", bank_account_id=account_id)
        await ledger.create_splits(
            parent,
            [
                SplitInput(category=Category.MEMBERSHIP, amount=Decimal("40")),
                SplitInput(category=Category.PROJECTS, amount=Decimal("60")),
            ],
        )

        await ledger.reconcile_account(account_id, Decimal("1100"), "2026-03-31")

        splits = await ledger.get_splits(parent)
        assert {s.status for s in splits} == {TransactionStatus.RECONCILED}

    @pytest.mark.asyncio
    async def test_category_filter_only_changes_record_balance(
        self, ledger: Ledger, account_id: str, seed
    ) -> None:
        await seed()

        await ledger.reconcile_account(
            account_id, Decimal("1300"), "2026-03-31", category_filter=Bucket.PROJECT
        )

        record = (await ledger.get_reconciliation_history(account_id))[0]
        assert record.status == ReconciliationStatus.COMPLETED
        assert record.system_balance == Decimal("1500")

    @pytest.mark.asyncio
    async def test_history_newest_first(self, ledger: Ledger, account_id: str) -> None:
        await ledger.reconcile_account(account_id, Decimal("1000"), "2026-01-31")
        await ledger.reconcile_account(account_id, Decimal("1000"), "2026-02-28")

        history = await ledger.get_reconciliation_history(account_id)

        assert [r.reconciliation_date[:10] for r in history] == ["2026-02-28", "2026-01-31"]

    @pytest.mark.asyncio
    async def test_unknown_account_writes_nothing(self, ledger: Ledger, gateway: InMemoryGateway) -> None:
        with pytest.raises(AccountNotFound):
            await ledger.reconcile_account("ghost", Decimal("0"), "2026-03-31")

        assert gateway.count(Collection.RECONCILIATIONS) == 0
