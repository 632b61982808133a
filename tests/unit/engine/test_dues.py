"""
회비 테스트

자격 규칙, 연회비 갱신, 리마인더, 현황/목록, 납부 처리
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from adapters.mock import InMemoryMemberDirectory, MockNotifier
from core.domain.models import Member
from core.errors import EligibilityViolation, MemberNotFound, ValidationError
from core.types import (
    Bucket,
    Category,
    MembershipType,
    PaymentStatus,
    TransactionStatus,
    TransactionType,
)
from engine.bootstrap import Ledger
from engine.dues.rules import check_eligibility, dues_amount, member_age
from engine.transactions.store import TransactionFilter

TODAY = date(2026, 1, 15)


def _member(**fields) -> Member:
    return Member.from_dict({"id": "m-1", "name": "Aisyah", **fields})


class TestRules:
    """유형별 회비/자격"""

    def test_fixed_schedule(self) -> None:
        assert dues_amount(MembershipType.PROBATION) == Decimal("350")
        assert dues_amount(MembershipType.FULL) == Decimal("300")
        assert dues_amount(MembershipType.HONORARY) == Decimal("50")
        assert dues_amount(MembershipType.SENATOR) == Decimal("0")
        assert dues_amount(MembershipType.VISITING) == Decimal("500")

    def test_default_type_is_full(self) -> None:
        assert check_eligibility(_member(), "Malaysia", TODAY) == MembershipType.FULL

    def test_age_uses_birthday(self) -> None:
        member = _member(date_of_birth="1985-06-01")

        assert member_age(member, date(2026, 5, 31)) == 40
        assert member_age(member, date(2026, 6, 1)) == 41
        assert member_age(_member(), TODAY) == 0

    def test_honorary_must_be_over_40(self) -> None:
        member = _member(membership_type="Honorary", date_of_birth="1986-01-01")

        with pytest.raises(EligibilityViolation, match=r"must be over 40 years old \(current age: 40\)"):
            check_eligibility(member, "Malaysia", TODAY)

    def test_honorary_over_40(self) -> None:
        member = _member(membership_type="Honorary", date_of_birth="1980-01-01")

        assert check_eligibility(member, "Malaysia", TODAY) == MembershipType.HONORARY

    @pytest.mark.parametrize("nationality", [None, "Malaysia"])
    def test_visiting_needs_foreign_nationality(self, nationality) -> None:
        member = _member(membership_type="Visiting", nationality=nationality)

        with pytest.raises(EligibilityViolation, match="non-Malaysian citizen"):
            check_eligibility(member, "Malaysia", TODAY)

    def test_visiting_foreigner(self) -> None:
        member = _member(membership_type="Visiting", nationality="Japan")

        assert check_eligibility(member, "Malaysia", TODAY) == MembershipType.VISITING

    def test_senator_requires_certification(self) -> None:
        with pytest.raises(EligibilityViolation, match="senator certification"):
            check_eligibility(_member(membership_type="Senator"), "Malaysia", TODAY)

        certified = _member(membership_type="Senator", senator_certified=True)
        assert check_eligibility(certified, "Malaysia", TODAY) == MembershipType.SENATOR


@pytest.fixture
def fixed_clock(ledger: Ledger):
    """2026-01-15 기준 시각"""
    ledger.dues.clock = lambda: datetime(2026, 1, 15, tzinfo=timezone.utc)
    return ledger.dues.clock


@pytest.fixture
def chapter(ledger: Ledger, members: InMemoryMemberDirectory, make_tx, fixed_clock):
    """2025년 회비 납부 회원 구성"""

    async def seed(roster: list[dict]) -> None:
        for member in roster:
            members.add(member)
            await make_tx(
                date="2025-01-01",
                description=f"2025 Membership Dues - {member['name']}",
                amount="300",
                type=TransactionType.INCOME,
                category=Category.MEMBERSHIP,
                status=TransactionStatus.CLEARED,
                member_id=member["id"],
            )

    return seed


async def _dues_for(ledger: Ledger, member_id: str, year: int):
    found = await ledger.get_all_transactions(
        TransactionFilter(category=Category.MEMBERSHIP, member_id=member_id)
    )
    return [t for t in found if t.date.startswith(str(year))]


class TestInitiateRenewal:
    """연회비 갱신"""

    @pytest.mark.asyncio
    async def test_creates_pending_dues(self, ledger: Ledger, notifier: MockNotifier, chapter) -> None:
        await chapter([
            {"id": "m-1", "name": "Aisyah", "membership_type": "Full"},
            {"id": "m-2", "name": "Ben", "membership_type": "Probation"},
        ])

        result = await ledger.initiate_dues_renewal(2026)

        assert result.total_members == 2
        assert result.renewals_by_type[MembershipType.FULL] == 1
        assert result.renewals_by_type[MembershipType.PROBATION] == 1
        assert result.notifications_sent == 2
        assert result.validation_errors == []

        (tx,) = await _dues_for(ledger, "m-2", 2026)
        assert tx.amount == Decimal("350")
        assert tx.status == TransactionStatus.PENDING
        assert tx.bucket == Bucket.DUES
        assert tx.date.startswith("2026-01-01")
        assert tx.year == 2026
        assert notifier.for_member("m-1")[0].title == "Membership Dues Renewal for 2026"

    @pytest.mark.asyncio
    async def test_young_honorary_collected_others_processed(
        self, ledger: Ledger, members: InMemoryMemberDirectory, chapter
    ) -> None:
        """35세 Honorary → validation_errors 1건, 다른 회원은 정상 처리"""
        await chapter([
            {"id": "h-1", "name": "Chen", "membership_type": "Honorary", "date_of_birth": "1990-06-01"},
            {"id": "m-1", "name": "Aisyah", "membership_type": "Full"},
        ])

        result = await ledger.initiate_dues_renewal(2026)

        assert len(result.validation_errors) == 1
        assert result.validation_errors[0]["member_id"] == "h-1"
        assert "current age: 35" in result.validation_errors[0]["error"]
        assert await _dues_for(ledger, "h-1", 2026) == []
        assert len(await _dues_for(ledger, "m-1", 2026)) == 1
        assert members.members["m-1"]["dues_status"] == "Pending"

    @pytest.mark.asyncio
    async def test_running_twice_creates_one_transaction(self, ledger: Ledger, chapter) -> None:
        await chapter([{"id": "m-1", "name": "Aisyah"}])

        await ledger.initiate_dues_renewal(2026)
        second = await ledger.initiate_dues_renewal(2026)

        assert len(await _dues_for(ledger, "m-1", 2026)) == 1
        assert sum(second.renewals_by_type.values()) == 0

    @pytest.mark.asyncio
    async def test_senator_marked_paid_without_notification(
        self, ledger: Ledger, members: InMemoryMemberDirectory, notifier: MockNotifier, chapter
    ) -> None:
        await chapter([
            {"id": "s-1", "name": "Datuk Lim", "membership_type": "Senator", "senator_certified": True},
        ])

        result = await ledger.initiate_dues_renewal(2026)

        assert result.renewals_by_type[MembershipType.SENATOR] == 1
        assert notifier.message_count == 0
        (tx,) = await _dues_for(ledger, "s-1", 2026)
        assert tx.amount == Decimal("0")
        assert members.members["s-1"]["dues_status"] == "Paid"
        assert members.members["s-1"]["dues_year"] == 2026

    @pytest.mark.asyncio
    async def test_only_cleared_prior_year_payers(self, ledger: Ledger, members: InMemoryMemberDirectory, make_tx, fixed_clock) -> None:
        members.add({"id": "m-9", "name": "Pending Pete"})
        await make_tx(
            date="2025-01-01", amount="300", category=Category.MEMBERSHIP,
            status=TransactionStatus.PENDING, member_id="m-9",
        )

        result = await ledger.initiate_dues_renewal(2026)

        assert result.total_members == 0

    @pytest.mark.asyncio
    async def test_failed_notification_not_counted(self, ledger: Ledger, chapter) -> None:
        await chapter([{"id": "m-1", "name": "Aisyah"}])
        ledger.dues.notifier = MockNotifier(should_fail=True)

        result = await ledger.initiate_dues_renewal(2026)

        assert result.notifications_sent == 0
        assert result.renewals_by_type[MembershipType.FULL] == 1


class TestReminders:
    """연체 리마인더"""

    @pytest.mark.asyncio
    async def test_overdue_members_except_senators(
        self, ledger: Ledger, notifier: MockNotifier, chapter, make_tx
    ) -> None:
        await chapter([
            {"id": "m-1", "name": "Aisyah"},
            {"id": "s-1", "name": "Datuk Lim", "membership_type": "Senator", "senator_certified": True},
        ])
        await make_tx(
            date="2026-01-01", amount="300", category=Category.MEMBERSHIP, member_id="s-1",
            description="Manual senator dues",
        )
        await ledger.initiate_dues_renewal(2026)
        notifier.clear()
        ledger.dues.clock = lambda: datetime(2026, 3, 1, tzinfo=timezone.utc)

        sent = await ledger.send_dues_reminders(2026)

        assert sent == 1
        assert notifier.last_notification.member_id == "m-1"
        assert notifier.last_notification.level == "WARNING"
        assert notifier.last_notification.title == "Reminder: Membership Dues Payment Overdue"

    @pytest.mark.asyncio
    async def test_threshold_not_reached(self, ledger: Ledger, chapter) -> None:
        await chapter([{"id": "m-1", "name": "Aisyah"}])
        await ledger.initiate_dues_renewal(2026)

        assert await ledger.send_dues_reminders(2026, days_overdue=30) == 0
        assert await ledger.send_dues_reminders(2026, days_overdue=10) == 1


class TestStatusAndPayment:
    """현황/목록/납부"""

    @pytest.mark.asyncio
    async def test_renewal_status(self, ledger: Ledger, chapter, make_tx) -> None:
        await chapter([
            {"id": "m-1", "name": "Aisyah"},
            {"id": "m-2", "name": "Ben", "membership_type": "Probation"},
        ])
        await ledger.initiate_dues_renewal(2026)

        status = await ledger.get_dues_renewal_status(2026)

        assert status["total_members"] == 2
        assert status["by_type"]["Full"] == {"total": 1, "paid": 0, "pending": 1, "overdue": 0}
        assert status["by_category"] == {"renewal": 2, "new": 0}

    @pytest.mark.asyncio
    async def test_process_payment(self, ledger: Ledger, members: InMemoryMemberDirectory, chapter) -> None:
        await chapter([{"id": "m-1", "name": "Aisyah"}])
        await ledger.initiate_dues_renewal(2026)

        tx_id = await ledger.process_dues_payment("m-1", 2026, Decimal("300.00"), "2026-01-20")

        tx = await ledger.get_transaction_by_id(tx_id)
        assert tx.status == TransactionStatus.CLEARED
        assert tx.date.startswith("2026-01-20")
        assert members.members["m-1"]["dues_status"] == "Paid"
        assert members.members["m-1"]["dues_year"] == 2026

        entries = await ledger.get_members_dues_list(dues_year=2026)
        assert [(e.member_id, e.payment_status, e.is_renewal) for e in entries] == [
            ("m-1", PaymentStatus.PAID, True)
        ]

    @pytest.mark.asyncio
    async def test_payment_amount_must_match(self, ledger: Ledger, chapter) -> None:
        await chapter([{"id": "m-1", "name": "Aisyah"}])
        await ledger.initiate_dues_renewal(2026)

        with pytest.raises(ValidationError, match="does not match"):
            await ledger.process_dues_payment("m-1", 2026, Decimal("250"), "2026-01-20")

    @pytest.mark.asyncio
    async def test_payment_without_pending(self, ledger: Ledger, chapter) -> None:
        await chapter([{"id": "m-1", "name": "Aisyah"}])

        with pytest.raises(ValidationError, match="No pending dues"):
            await ledger.process_dues_payment("m-1", 2026, Decimal("300"), "2026-01-20")

    @pytest.mark.asyncio
    async def test_payment_unknown_member(self, ledger: Ledger) -> None:
        with pytest.raises(MemberNotFound):
            await ledger.process_dues_payment("ghost", 2026, Decimal("300"), "2026-01-20")

    @pytest.mark.asyncio
    async def test_dues_list_filters_and_order(self, ledger: Ledger, members: InMemoryMemberDirectory, chapter, make_tx) -> None:
        await chapter([
            {"id": "m-1", "name": "Zara"},
            {"id": "m-2", "name": "Ben"},
            {"id": "p-1", "name": "Adam", "membership_type": "Probation"},
        ])
        await ledger.initiate_dues_renewal(2026)
        members.add({"id": "n-1", "name": "Newbie", "membership_type": "Probation"})
        await make_tx(
            date="2026-01-05", amount="350", category=Category.MEMBERSHIP, member_id="n-1",
        )

        entries = await ledger.get_members_dues_list()
        assert [e.member_name for e in entries] == ["Ben", "Zara", "Adam", "Newbie"]

        new_members = await ledger.get_members_dues_list(member_category="new")
        assert [e.member_id for e in new_members] == ["n-1"]

        probation = await ledger.get_members_dues_list(membership_type=MembershipType.PROBATION)
        assert {e.member_id for e in probation} == {"p-1", "n-1"}
