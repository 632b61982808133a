"""
Discrepancy Detector

시스템 잔고와 은행 명세서 잔고를 비교하여 불일치 감지.

- amount_mismatch: |시스템 잔고 - 명세서 잔고| > 0.01 (최대 1건)
- duplicate: (date, amount, description) 동일 그룹의 각 거래 (그룹 크기 ≥ 2)
"""

import logging
import uuid
from collections import defaultdict
from decimal import Decimal

from core.domain.models import ReconciliationDiscrepancy, Transaction
from core.types import DiscrepancyType, TransactionStatus
from core.utils.money import amounts_match

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class DiscrepancyDetector:
    """불일치 감지기 (순수 계산, 저장소 접근 없음)"""

    def detect_amount_mismatch(
        self,
        system_balance: Decimal,
        statement_balance: Decimal,
    ) -> ReconciliationDiscrepancy | None:
        """잔고 불일치 감지

        Returns:
            ReconciliationDiscrepancy 또는 None (허용 오차 이내)
        """
        if amounts_match(system_balance, statement_balance):
            return None

        difference = system_balance - statement_balance
        return ReconciliationDiscrepancy(
            id=_new_id(),
            type=DiscrepancyType.AMOUNT_MISMATCH,
            expected_amount=statement_balance,
            actual_amount=system_balance,
            description=(
                f"System balance ({system_balance}) does not match statement balance "
                f"({statement_balance}). Difference: {difference}"
            ),
        )

    def detect_duplicates(self, transactions: list[Transaction]) -> list[ReconciliationDiscrepancy]:
        """중복 의심 거래 감지

        이미 Reconciled 상태인 거래는 제외.
        그룹의 모든 거래가 각각 1건의 불일치로 보고됨.
        """
        groups: dict[tuple[str, Decimal, str], list[Transaction]] = defaultdict(list)
        for tx in transactions:
            if tx.status == TransactionStatus.RECONCILED:
                continue
            groups[(tx.date, tx.amount, tx.description)].append(tx)

        discrepancies = []
        for members in groups.values():
            if len(members) < 2:
                continue
            for tx in members:
                discrepancies.append(
                    ReconciliationDiscrepancy(
                        id=_new_id(),
                        transaction_id=tx.id,
                        type=DiscrepancyType.DUPLICATE,
                        expected_amount=tx.amount,
                        actual_amount=tx.amount,
                        description=f"Potential duplicate transaction: {tx.description} ({tx.amount})",
                    )
                )

        if discrepancies:
            logger.info(f"Potential duplicates detected: {len(discrepancies)}")
        return discrepancies

    def detect(
        self,
        system_balance: Decimal,
        statement_balance: Decimal,
        transactions: list[Transaction],
    ) -> list[ReconciliationDiscrepancy]:
        """전체 불일치 감지 (잔고 불일치 → 중복 순)"""
        discrepancies: list[ReconciliationDiscrepancy] = []
        mismatch = self.detect_amount_mismatch(system_balance, statement_balance)
        if mismatch is not None:
            discrepancies.append(mismatch)
        discrepancies.extend(self.detect_duplicates(transactions))
        return discrepancies
