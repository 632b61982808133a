"""
Financial Reports

읽기 전용 집계: 재무 보고서, 손익계산서, 재무상태표, 현금흐름표, 연간 요약.

- 분할 거래는 분할 항목으로 펼쳐서 집계 (부모 금액 이중 집계 없음)
- 회계연도: 시작 월(1~12) 지정 시 N 회계연도 = (N-1)년 시작 월 ~ N년 시작 월 전월 말
"""

import calendar
import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any

from core.domain.models import Transaction
from core.types import Category, TransactionStatus, TransactionType
from core.utils.money import money_str
from core.utils.timezone import DateLike, end_of_day_iso, now_utc, parse_datetime, to_iso
from engine.accounts.service import AccountService
from engine.inventory.stock import StockKeeper
from engine.splits.ledger import SplitLedger
from engine.transactions.store import TransactionStore

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


# =========================================================================
# 기간
# =========================================================================


@dataclass(frozen=True)
class ReportPeriod:
    """보고 기간 (양 끝 포함)"""

    start: str
    end: str
    label: str

    def contains(self, iso: str) -> bool:
        return self.start <= iso <= self.end

    @staticmethod
    def between(start: date, last_day: date, label: str) -> "ReportPeriod":
        return ReportPeriod(
            start=to_iso(start),
            end=datetime.combine(last_day, time.max, tzinfo=timezone.utc).isoformat(timespec="microseconds"),
            label=label,
        )


def month_period(year: int, month: int) -> ReportPeriod:
    last = calendar.monthrange(year, month)[1]
    return ReportPeriod.between(
        date(year, month, 1),
        date(year, month, last),
        f"{calendar.month_name[month]} {year}",
    )


def fiscal_period(year: int, fiscal_start_month: int = 1) -> ReportPeriod:
    """회계연도 기간

    Args:
        year: 회계연도 (종료 연도 기준)
        fiscal_start_month: 시작 월 (1 = 달력 연도)

    Example:
        fiscal_period(2026, 4) → 2025-04-01 ~ 2026-03-31
    """
    if not 1 <= fiscal_start_month <= 12:
        raise ValueError(f"Invalid fiscal start month: {fiscal_start_month}")
    if fiscal_start_month == 1:
        return ReportPeriod.between(date(year, 1, 1), date(year, 12, 31), f"Calendar Year {year}")

    start = date(year - 1, fiscal_start_month, 1)
    last = date(year, fiscal_start_month, 1) - timedelta(days=1)
    label = (
        f"Fiscal Year {start.year}-{last.year} "
        f"({calendar.month_name[start.month]} - {calendar.month_name[last.month]})"
    )
    return ReportPeriod.between(start, last, label)


# =========================================================================
# 집계 헬퍼
# =========================================================================


def _total(transactions: list[Transaction]) -> Decimal:
    return sum((abs(t.amount) for t in transactions), ZERO)


def _income(transactions: list[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.type == TransactionType.INCOME]


def _expenses(transactions: list[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.type == TransactionType.EXPENSE]


def _net(transactions: list[Transaction]) -> Decimal:
    return _total(_income(transactions)) - _total(_expenses(transactions))


def _mentions(transaction: Transaction, word: str) -> bool:
    return word in (transaction.description or "").lower()


def _money_tree(data: Any) -> Any:
    """중첩 dict의 Decimal → 문자열"""
    if isinstance(data, Decimal):
        return money_str(data)
    if isinstance(data, dict):
        return {k: _money_tree(v) for k, v in data.items()}
    return data


class ReportGenerator:
    """재무 보고서 생성기

    Args:
        transactions: TransactionStore
        splits: SplitLedger (분할 펼침)
        accounts: AccountService (현금/은행 잔고)
        stock: StockKeeper (재고 자산 가치)
    """

    def __init__(
        self,
        transactions: TransactionStore,
        splits: SplitLedger,
        accounts: AccountService,
        stock: StockKeeper,
    ):
        self.transactions = transactions
        self.splits = splits
        self.accounts = accounts
        self.stock = stock

    async def flattened(self) -> list[Transaction]:
        """전체 거래 (분할 거래는 분할 항목으로 대체)"""
        all_transactions = await self.transactions.list()
        split_parents = [t.id for t in all_transactions if t.is_split]
        splits_by_parent = await self.splits.get_splits_for_parents(split_parents)

        flat: list[Transaction] = []
        for tx in all_transactions:
            if not tx.is_split:
                flat.append(tx)
                continue
            for split in splits_by_parent.get(tx.id, []):
                flat.append(replace(
                    tx,
                    id=split.id,
                    category=split.category,
                    amount=split.amount,
                    description=split.description,
                    project_id=split.project_id,
                    member_id=split.member_id,
                    purpose=split.purpose,
                    payment_request_id=split.payment_request_id,
                    year=split.year,
                    is_split=False,
                    split_ids=[],
                    bucket=None,
                ))
        return flat

    async def _in_period(self, period: ReportPeriod) -> list[Transaction]:
        return [t for t in await self.flattened() if period.contains(t.date)]

    async def _cash_and_bank(self) -> Decimal:
        return sum((a.balance for a in await self.accounts.list()), ZERO)

    # -------------------------------------------------------------------------
    # 보고서
    # -------------------------------------------------------------------------

    async def financial_summary(self, year: int | None = None) -> dict[str, Any]:
        """연간 요약 (카테고리별 수입/지출)"""
        year = year or now_utc().year
        transactions = await self._in_period(fiscal_period(year))

        by_category: dict[str, dict[str, Decimal]] = defaultdict(lambda: {"income": ZERO, "expenses": ZERO})
        for tx in transactions:
            key = "income" if tx.type == TransactionType.INCOME else "expenses"
            by_category[tx.category.value][key] += abs(tx.amount)

        total_income = _total(_income(transactions))
        total_expenses = _total(_expenses(transactions))
        return _money_tree({
            "total_income": total_income,
            "total_expenses": total_expenses,
            "net_balance": total_income - total_expenses,
            "by_category": dict(by_category),
        })

    async def financial_report(
        self,
        report_type: str,
        year: int,
        month: int | None = None,
        fiscal_start_month: int = 1,
    ) -> dict[str, Any]:
        """기간 재무 보고서

        Args:
            report_type: income / expense / balance / cashflow (표시용 라벨)
            year: 연도 (회계연도는 종료 연도)
            month: 1~12 지정 시 해당 월
            fiscal_start_month: 회계연도 시작 월
        """
        period = month_period(year, month) if month else fiscal_period(year, fiscal_start_month)
        transactions = await self._in_period(period)

        monthly: dict[str, dict[str, Decimal]] = {}
        categories: dict[str, dict[str, Any]] = {}
        for tx in sorted(transactions, key=lambda t: t.date):
            month_key = tx.date[:7]
            flow = monthly.setdefault(month_key, {"income": ZERO, "expenses": ZERO, "net": ZERO})
            category = categories.setdefault(
                tx.category.value, {"income": ZERO, "expenses": ZERO, "count": 0}
            )
            if tx.type == TransactionType.INCOME:
                flow["income"] += abs(tx.amount)
                category["income"] += abs(tx.amount)
            else:
                flow["expenses"] += abs(tx.amount)
                category["expenses"] += abs(tx.amount)
            flow["net"] = flow["income"] - flow["expenses"]
            category["count"] += 1

        total_income = _total(_income(transactions))
        total_expenses = _total(_expenses(transactions))
        net = total_income - total_expenses

        return _money_tree({
            "report_type": report_type,
            "period": period.label,
            "transaction_count": len(transactions),
            "category_breakdown": categories,
            "monthly_cash_flow": monthly,
            "summary": {
                "total_income": total_income,
                "total_expenses": total_expenses,
                "net_balance": net,
                "cash_flow": net,
            },
        })

    async def income_statement(self, year: int, fiscal_start_month: int = 1) -> dict[str, Any]:
        """손익계산서"""
        period = fiscal_period(year, fiscal_start_month)
        transactions = await self._in_period(period)
        income = _income(transactions)
        expenses = _expenses(transactions)

        def of(items: list[Transaction], *categories: Category) -> Decimal:
            return _total([t for t in items if t.category in categories])

        membership_dues = of(income, Category.MEMBERSHIP)
        event_fees = of(income, Category.PROJECTS)
        other_income = _total(income) - membership_dues - event_fees
        total_revenue = _total(income)

        event_expenses = of(expenses, Category.PROJECTS)
        administrative = of(expenses, Category.ADMINISTRATIVE)
        other_expenses = _total(expenses) - event_expenses - administrative
        total_expenses = _total(expenses)

        return _money_tree({
            "period": period.label,
            "revenue": {
                "membership_dues": membership_dues,
                "event_fees": event_fees,
                "sponsorships": ZERO,
                "other_income": other_income,
                "total": total_revenue,
            },
            "expenses": {
                "event_expenses": event_expenses,
                "project_expenses": ZERO,
                "administrative": administrative,
                "other": other_expenses,
                "total": total_expenses,
            },
            "net_income": total_revenue - total_expenses,
            "generated_at": to_iso(now_utc()),
        })

    async def balance_sheet(self, year: int, as_of: DateLike | None = None) -> dict[str, Any]:
        """재무상태표

        Args:
            year: 보고 연도
            as_of: 기준일 (None이면 해당 연도 말)
        """
        report_date = end_of_day_iso(as_of) if as_of is not None else fiscal_period(year).end
        next_year_end = fiscal_period(parse_datetime(report_date).year + 1).end
        year_start = fiscal_period(year).start
        transactions = await self.flattened()

        pending_until = [
            t for t in transactions
            if t.status == TransactionStatus.PENDING and t.date <= report_date
        ]
        upcoming = [t for t in transactions if report_date < t.date <= next_year_end]

        cash_and_bank = await self._cash_and_bank()
        receivable = _total(_income(pending_until))
        prepaid = _total(_expenses(upcoming))
        payable = _total(_expenses(pending_until))
        deferred = _total(_income(upcoming))

        inventory_value = sum(
            (Decimal(item.quantity) * item.purchase_price
             for item in await self.stock.list_items()
             if item.purchase_price is not None),
            ZERO,
        )

        current_year = [t for t in transactions if year_start <= t.date <= report_date]
        previous = [t for t in transactions if t.date < year_start]
        retained = _net(previous)
        current_net = _net(current_year)

        total_current_assets = cash_and_bank + receivable + prepaid
        total_assets = total_current_assets + inventory_value
        total_liabilities = payable + deferred
        total_equity = retained + current_net

        return _money_tree({
            "as_of": report_date,
            "assets": {
                "current_assets": {
                    "cash_and_bank": cash_and_bank,
                    "accounts_receivable": receivable,
                    "prepaid_expenses": prepaid,
                    "total": total_current_assets,
                },
                "fixed_assets": {
                    "inventory": inventory_value,
                    "equipment": ZERO,
                    "total": inventory_value,
                },
                "total": total_assets,
            },
            "liabilities": {
                "current_liabilities": {
                    "accounts_payable": payable,
                    "accrued_expenses": ZERO,
                    "deferred_revenue": deferred,
                    "total": total_liabilities,
                },
                "total": total_liabilities,
            },
            "equity": {
                "retained_earnings": retained,
                "current_year_net_income": current_net,
                "total": total_equity,
            },
            "total_liabilities_and_equity": total_liabilities + total_equity,
        })

    async def cash_flow_statement(self, year: int, fiscal_start_month: int = 1) -> dict[str, Any]:
        """현금흐름표 (설명 키워드 기반 투자/재무 활동 추정)"""
        period = fiscal_period(year, fiscal_start_month)
        transactions = await self.flattened()
        in_period = [t for t in transactions if period.contains(t.date)]
        income = _income(in_period)
        expenses = _expenses(in_period)

        net_income = _net(in_period)

        equipment = _total([t for t in expenses if _mentions(t, "equipment")])
        inventory = _total([t for t in expenses if _mentions(t, "inventory")])
        net_investing = -(equipment + inventory)

        contributions = _total([t for t in income if t.category == Category.MEMBERSHIP])
        loans_received = _total([t for t in income if _mentions(t, "loan")])
        loan_repayments = _total([t for t in expenses if _mentions(t, "loan")])
        net_financing = contributions + loans_received - loan_repayments

        beginning = _net([t for t in transactions if t.date < period.start])
        ending = await self._cash_and_bank()

        return _money_tree({
            "period": period.label,
            "operating_activities": {
                "net_income": net_income,
                "net_cash_from_operations": net_income,
            },
            "investing_activities": {
                "equipment_purchases": equipment,
                "inventory_purchases": inventory,
                "net_cash_from_investing": net_investing,
            },
            "financing_activities": {
                "member_contributions": contributions,
                "loans_received": loans_received,
                "loan_repayments": loan_repayments,
                "net_cash_from_financing": net_financing,
            },
            "beginning_cash": beginning,
            "ending_cash": ending,
            "net_change_in_cash": ending - beginning,
            "generated_at": to_iso(now_utc()),
        })
