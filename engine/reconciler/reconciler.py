"""
Reconciler

은행 명세서 대사 (Reconciliation).

1. 시스템 잔고 계산 (BalanceCalculator)
2. 불일치 감지 (DiscrepancyDetector)
3. 정산 기록 저장 (불일치 없으면 completed, 있으면 in_progress)
4. 계좌 last_reconciled / display_balance 갱신
5. 불일치 없을 때만: 기준일 이하 미정산 거래 → Reconciled (+ 분할 상태 전파)

불일치가 있어도 예외를 발생시키지 않음 (in_progress 기록 반환).
"""

import logging
from decimal import Decimal

from adapters.interfaces import IPersistenceGateway
from adapters.models import OrderBy, QueryFilter
from core.constants import Defaults
from core.domain.models import ReconciliationDiscrepancy, ReconciliationRecord, Transaction
from core.types import Bucket, Collection, ReconciliationStatus, TransactionStatus
from core.utils.money import money_str, to_decimal
from core.utils.timezone import DateLike, now_utc, to_iso
from engine.balance.calculator import BalanceCalculator
from engine.reconciler.detector import DiscrepancyDetector
from engine.splits.ledger import SplitLedger

logger = logging.getLogger(__name__)


class Reconciler:
    """정산 엔진

    Args:
        gateway: 문서 저장소
        calculator: BalanceCalculator
        splits: SplitLedger (정산 상태 전파)
        detector: DiscrepancyDetector (None이면 기본 생성)
    """

    def __init__(
        self,
        gateway: IPersistenceGateway,
        calculator: BalanceCalculator,
        splits: SplitLedger,
        detector: DiscrepancyDetector | None = None,
    ):
        self.gateway = gateway
        self.calculator = calculator
        self.splits = splits
        self.detector = detector or DiscrepancyDetector()

    async def detect_discrepancies(
        self,
        account_id: str,
        statement_balance: Decimal,
        date: DateLike,
    ) -> list[ReconciliationDiscrepancy]:
        """불일치 감지 (저장 없음)

        잔고 비교는 필터 없는 전체 잔고 기준.

        Raises:
            AccountNotFound: 계좌 없음
        """
        statement_balance = to_decimal(statement_balance)
        balance = await self.calculator.compute_balance(account_id, date)
        transactions = await self.calculator.account_transactions(account_id, date)
        return self.detector.detect(balance.total, statement_balance, transactions)

    async def reconcile(
        self,
        account_id: str,
        statement_balance: Decimal,
        date: DateLike,
        actor: str = Defaults.SYSTEM_ACTOR,
        notes: str | None = None,
        category_filter: Bucket | None = None,
    ) -> str:
        """정산 실행

        Args:
            account_id: 계좌 ID
            statement_balance: 명세서 잔고
            date: 정산 기준일
            actor: 정산 수행자
            notes: 메모
            category_filter: 버킷 필터 (기록의 system_balance에만 적용)

        Returns:
            정산 기록 ID

        Raises:
            AccountNotFound: 계좌 없음 (쓰기 없음)
        """
        statement_balance = to_decimal(statement_balance)
        reconciliation_date = to_iso(date)

        filtered = await self.calculator.compute_balance(account_id, date, category_filter)
        discrepancies = await self.detect_discrepancies(account_id, statement_balance, date)

        status = (
            ReconciliationStatus.COMPLETED
            if not discrepancies
            else ReconciliationStatus.IN_PROGRESS
        )
        now = to_iso(now_utc())

        record = ReconciliationRecord(
            id="",
            bank_account_id=account_id,
            reconciliation_date=reconciliation_date,
            statement_balance=statement_balance,
            system_balance=filtered.total,
            adjusted_balance=statement_balance,
            discrepancies=tuple(discrepancies),
            status=status,
            transaction_type_summary=dict(filtered.by_bucket),
            reconciled_by=actor,
            notes=notes,
            created_at=now,
        )
        record_id = await self.gateway.create(Collection.RECONCILIATIONS, record.to_dict())

        await self.gateway.update(
            Collection.BANK_ACCOUNTS,
            account_id,
            {
                "last_reconciled": reconciliation_date,
                "display_balance": money_str(statement_balance),
                "updated_at": now,
            },
        )

        if discrepancies:
            logger.warning(
                f"Reconciliation in progress: account={account_id}, discrepancies={len(discrepancies)}",
                extra={"record_id": record_id},
            )
            return record_id

        marked = await self._mark_reconciled(account_id, date, actor, now)
        logger.info(
            f"Reconciliation completed: account={account_id}, marked={marked}",
            extra={"record_id": record_id},
        )
        return record_id

    async def _mark_reconciled(
        self,
        account_id: str,
        date: DateLike,
        actor: str,
        reconciled_at: str,
    ) -> int:
        """기준일 이하 미정산 거래를 Reconciled로 변경 (분할 포함)"""
        transactions: list[Transaction] = await self.calculator.account_transactions(account_id, date)
        marked = 0
        for tx in transactions:
            if tx.status == TransactionStatus.RECONCILED:
                continue
            await self.gateway.update(
                Collection.TRANSACTIONS,
                tx.id,
                {
                    "status": TransactionStatus.RECONCILED.value,
                    "reconciled_at": reconciled_at,
                    "reconciled_by": actor,
                },
            )
            if tx.is_split:
                await self.splits.propagate_status(
                    tx.id, TransactionStatus.RECONCILED, reconciled_at, actor
                )
            marked += 1
        return marked

    async def get_history(self, account_id: str) -> list[ReconciliationRecord]:
        """계좌 정산 이력 (최신순)"""
        docs = await self.gateway.query(
            Collection.RECONCILIATIONS,
            [QueryFilter.eq("bank_account_id", account_id)],
            OrderBy("reconciliation_date", descending=True),
        )
        return [ReconciliationRecord.from_dict(d) for d in docs]
