"""
Dues Renewal Engine

연회비 갱신 주기 관리.

- initiate_renewal: 전년도 납부 회원 → 올해 Pending 회비 거래 생성 + 알림
- send_reminders: 기준 일수 경과한 Pending 회비 거래에 리마인더
- get_dues_renewal_status / get_members_dues_list: 연도별 현황
- process_dues_payment: 납부 처리 (거래 Cleared + 회원 Paid)

회원별 처리 실패는 validation_errors로 수집하며 이미 처리된 회원은 되돌리지 않음.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable

from adapters.interfaces import IMemberDirectory, INotifier
from core.constants import Defaults
from core.domain.models import Member, Transaction
from core.errors import MemberNotFound, ValidationError
from core.types import (
    Bucket,
    Category,
    DuesStatus,
    MembershipType,
    PaymentStatus,
    TransactionStatus,
    TransactionType,
)
from core.utils.money import amounts_match, money_str, to_decimal
from core.utils.timezone import DateLike, days_since, now_utc, to_iso, year_of
from engine.dues.rules import check_eligibility, dues_amount
from engine.transactions.store import TransactionFilter, TransactionStore

logger = logging.getLogger(__name__)


@dataclass
class RenewalResult:
    """회비 갱신 결과"""

    total_members: int = 0
    renewals_by_type: dict[MembershipType, int] = field(
        default_factory=lambda: {t: 0 for t in MembershipType}
    )
    notifications_sent: int = 0
    validation_errors: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_members": self.total_members,
            "renewals_by_type": {t.value: n for t, n in self.renewals_by_type.items()},
            "notifications_sent": self.notifications_sent,
            "validation_errors": list(self.validation_errors),
        }


@dataclass(frozen=True)
class MemberDuesEntry:
    """회원별 회비 현황 행"""

    member_id: str
    member_name: str
    membership_type: MembershipType
    dues_year: int
    dues_amount: Decimal
    payment_status: PaymentStatus
    payment_date: str | None
    is_renewal: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "member_id": self.member_id,
            "member_name": self.member_name,
            "membership_type": self.membership_type.value,
            "dues_year": self.dues_year,
            "dues_amount": money_str(self.dues_amount),
            "payment_status": self.payment_status.value,
            "payment_date": self.payment_date,
            "is_renewal": self.is_renewal,
        }


class DuesRenewalEngine:
    """회비 갱신 엔진

    Args:
        transactions: TransactionStore (회비 거래 생성/조회)
        members: 회원 디렉토리
        notifier: 알림 서비스
        home_country: 본국 (Visiting 자격 판정)
        overdue_days: 연체 판정 기준 일수
        clock: 현재 시각 함수 (테스트 주입용)
    """

    def __init__(
        self,
        transactions: TransactionStore,
        members: IMemberDirectory,
        notifier: INotifier,
        home_country: str = Defaults.HOME_COUNTRY,
        overdue_days: int = Defaults.DUES_OVERDUE_DAYS,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.transactions = transactions
        self.members = members
        self.notifier = notifier
        self.home_country = home_country
        self.overdue_days = overdue_days
        self.clock = clock

    # -------------------------------------------------------------------------
    # 조회 헬퍼
    # -------------------------------------------------------------------------

    async def _membership_income(self) -> list[Transaction]:
        """Membership 카테고리 Income 거래 전체"""
        return await self.transactions.list(
            TransactionFilter(category=Category.MEMBERSHIP, type=TransactionType.INCOME)
        )

    async def _load_member(self, member_id: str) -> Member | None:
        data = await self.members.get_member(member_id)
        return Member.from_dict(data) if data else None

    def _payment_status(self, tx: Transaction, now: datetime) -> PaymentStatus:
        if tx.status in (TransactionStatus.CLEARED, TransactionStatus.RECONCILED):
            return PaymentStatus.PAID
        if days_since(tx.date, now) > self.overdue_days:
            return PaymentStatus.OVERDUE
        return PaymentStatus.PENDING

    @staticmethod
    def _paid_in(dues: list[Transaction], member_id: str, year: int) -> bool:
        return any(t.member_id == member_id and year_of(t.date) == year for t in dues)

    # -------------------------------------------------------------------------
    # 갱신
    # -------------------------------------------------------------------------

    async def initiate_renewal(self, year: int) -> RenewalResult:
        """연회비 갱신 시작

        전년도 Cleared 회비 납부 회원 각각에 대해:
        1. 올해 회비 거래가 이미 있으면 건너뜀
        2. 유형별 자격 검증 (실패 시 validation_errors)
        3. 1월 1일자 Pending 회비 거래 생성 (bucket=dues)
        4. 회비 > 0이면 알림
        5. 회원 회비 상태 갱신 (Senator는 Paid)
        """
        dues = await self._membership_income()
        member_ids = list(dict.fromkeys(
            t.member_id for t in dues
            if t.member_id
            and year_of(t.date) == year - 1
            and t.status == TransactionStatus.CLEARED
        ))

        result = RenewalResult(total_members=len(member_ids))
        today = self.clock().date()

        for member_id in member_ids:
            try:
                member = await self._load_member(member_id)
                if member is None:
                    logger.warning(f"Renewal skipped, member not found: {member_id}")
                    continue

                if self._paid_in(dues, member_id, year):
                    continue

                membership_type = check_eligibility(member, self.home_country, today)
                amount = dues_amount(membership_type)

                # Senator(회비 0)도 갱신 기록으로 거래를 남김
                await self.transactions.create(
                    {
                        "type": TransactionType.INCOME,
                        "category": Category.MEMBERSHIP,
                        "bucket": Bucket.DUES,
                        "amount": amount,
                        "description": f"{year} Membership Dues - {membership_type.value} Member",
                        "member_id": member_id,
                        "status": TransactionStatus.PENDING,
                        "date": f"{year}-01-01",
                        "year": year,
                    },
                    allow_zero=True,
                )
                result.renewals_by_type[membership_type] += 1

                if amount > 0:
                    sent = await self.notifier.notify_member(
                        member_id,
                        f"Membership Dues Renewal for {year}",
                        f"Your {membership_type.value} membership dues of RM{amount} for {year} "
                        f"are now due. Please complete payment to maintain your active membership status.",
                    )
                    if sent:
                        result.notifications_sent += 1

                partial: dict[str, Any] = {
                    "dues_status": (DuesStatus.PENDING if amount > 0 else DuesStatus.PAID).value,
                }
                if amount == 0:
                    partial["dues_year"] = year
                await self.members.update_member(member_id, partial)

            except Exception as e:
                logger.error(f"Renewal failed for member {member_id}: {e}")
                result.validation_errors.append({"member_id": member_id, "error": str(e)})

        logger.info(
            f"Dues renewal initiated for {year}: "
            f"{ {t.value: n for t, n in result.renewals_by_type.items()} }",
            extra={"errors": len(result.validation_errors)},
        )
        return result

    # -------------------------------------------------------------------------
    # 리마인더
    # -------------------------------------------------------------------------

    async def send_reminders(self, year: int, days_overdue: int | None = None) -> int:
        """연체 회비 리마인더

        Args:
            year: 회비 연도
            days_overdue: 경과 일수 기준 (None이면 설정값)

        Returns:
            발송 건수 (Senator 제외)
        """
        threshold = self.overdue_days if days_overdue is None else days_overdue
        now = self.clock()
        pending = [
            t for t in await self._membership_income()
            if t.status == TransactionStatus.PENDING
            and year_of(t.date) == year
            and days_since(t.date, now) >= threshold
        ]

        sent = 0
        for tx in pending:
            if not tx.member_id:
                continue
            try:
                member = await self._load_member(tx.member_id)
                if member is None or member.effective_type == MembershipType.SENATOR:
                    continue

                delivered = await self.notifier.notify_member(
                    tx.member_id,
                    "Reminder: Membership Dues Payment Overdue",
                    f"Your {member.effective_type.value} dues of RM{tx.amount} for {year} are overdue. "
                    f"Please complete payment to avoid membership suspension.",
                    level="WARNING",
                )
                if delivered:
                    sent += 1
            except Exception as e:
                logger.error(f"Failed to send dues reminder to {tx.member_id}: {e}")

        logger.info(f"Dues reminders sent for {year}: {sent}/{len(pending)}")
        return sent

    # -------------------------------------------------------------------------
    # 현황
    # -------------------------------------------------------------------------

    async def get_dues_renewal_status(self, year: int) -> dict[str, Any]:
        """연도별 회비 현황

        Returns:
            {total_members, by_type{유형: {total, paid, pending, overdue}},
             by_category{renewal, new}}
        """
        dues = await self._membership_income()
        year_dues = [t for t in dues if year_of(t.date) == year]
        now = self.clock()

        by_type = {t.value: {"total": 0, "paid": 0, "pending": 0, "overdue": 0} for t in MembershipType}
        renewal = new = 0

        for tx in year_dues:
            if not tx.member_id:
                continue
            member = await self._load_member(tx.member_id)
            if member is None:
                continue

            bucket = by_type[member.effective_type.value]
            bucket["total"] += 1
            bucket[self._payment_status(tx, now).value] += 1

            if self._paid_in(dues, tx.member_id, year - 1):
                renewal += 1
            else:
                new += 1

        return {
            "total_members": len(year_dues),
            "by_type": by_type,
            "by_category": {"renewal": renewal, "new": new},
        }

    async def get_members_dues_list(
        self,
        membership_type: MembershipType | None = None,
        dues_year: int | None = None,
        payment_status: PaymentStatus | None = None,
        member_category: str | None = None,
    ) -> list[MemberDuesEntry]:
        """회원별 회비 목록

        회원의 dues_year(없으면 올해) 회비 거래가 있는 회원만 포함.
        정렬: 연도 내림차순 → 유형 → 이름.

        Args:
            member_category: "renewal" 또는 "new"
        """
        dues = await self._membership_income()
        now = self.clock()
        entries: list[MemberDuesEntry] = []

        for data in await self.members.list_members():
            member = Member.from_dict(data)
            year = member.dues_year or now.year
            member_dues = [
                t for t in dues
                if t.member_id == member.id and year_of(t.date) == year
            ]
            if not member_dues:
                continue

            # 같은 연도에 여러 건이면 가장 이른 거래 기준
            tx = min(member_dues, key=lambda t: t.date)
            entry = MemberDuesEntry(
                member_id=member.id,
                member_name=member.name,
                membership_type=member.effective_type,
                dues_year=year,
                dues_amount=dues_amount(member.effective_type),
                payment_status=self._payment_status(tx, now),
                payment_date=member.dues_paid_date,
                is_renewal=self._paid_in(dues, member.id, year - 1),
            )

            if membership_type is not None and entry.membership_type != membership_type:
                continue
            if dues_year is not None and entry.dues_year != dues_year:
                continue
            if payment_status is not None and entry.payment_status != payment_status:
                continue
            if member_category is not None and (member_category == "renewal") != entry.is_renewal:
                continue
            entries.append(entry)

        entries.sort(key=lambda e: (-e.dues_year, e.membership_type.value, e.member_name))
        return entries

    # -------------------------------------------------------------------------
    # 납부
    # -------------------------------------------------------------------------

    async def process_dues_payment(
        self,
        member_id: str,
        year: int,
        amount: Decimal,
        payment_date: DateLike,
    ) -> str:
        """회비 납부 처리

        1. 납부액이 유형별 회비와 일치하는지 검증 (±0.01)
        2. 해당 연도 Pending 회비 거래 → Cleared (date = 납부일)
        3. 회원 dues_status=Paid, dues_year, dues_paid_date 갱신

        Returns:
            처리된 거래 ID

        Raises:
            MemberNotFound: 회원 없음
            ValidationError: 금액 불일치 또는 Pending 거래 없음
        """
        amount = to_decimal(amount)
        member = await self._load_member(member_id)
        if member is None:
            raise MemberNotFound(member_id)

        expected = dues_amount(member.effective_type)
        if not amounts_match(amount, expected):
            raise ValidationError(
                f"Payment amount (RM{amount}) does not match "
                f"{member.effective_type.value} membership dues (RM{expected})"
            )

        pending = [
            t for t in await self._membership_income()
            if t.member_id == member_id
            and year_of(t.date) == year
            and t.status == TransactionStatus.PENDING
        ]
        if not pending:
            raise ValidationError(f"No pending dues transaction found for {member_id} in {year}")

        tx = min(pending, key=lambda t: t.date)
        paid_at = to_iso(payment_date)
        await self.transactions.update(
            tx.id,
            {"status": TransactionStatus.CLEARED, "date": paid_at},
        )
        await self.members.update_member(
            member_id,
            {
                "dues_status": DuesStatus.PAID.value,
                "dues_year": year,
                "dues_paid_date": paid_at,
            },
        )
        logger.info(f"Dues payment processed: member={member_id}, year={year}, tx={tx.id}")
        return tx.id
