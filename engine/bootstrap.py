"""
Ledger Bootstrap

의존성 주입 + 공개 API 파사드(Ledger).

구성:
    Gateway ─┬─ StockKeeper ── InventorySynchronizer ─┐
             ├─ SplitLedger ──────────────────────────┼─ TransactionStore
             ├─ BalanceCalculator ── Reconciler       │
             ├─ AccountService                        │
             └─ DuesRenewalEngine (+ 회원 디렉토리, 알림) ┘
"""

import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, AsyncIterator

from adapters.db.member_directory import SQLiteMemberDirectory
from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.db.sqlite_gateway import SQLiteGateway
from adapters.interfaces import IMemberDirectory, INotifier, IPersistenceGateway
from adapters.log_notifier import LogNotifier
from adapters.slack.notifier import SlackNotifier
from core.config.loader import AppSettings, get_settings
from core.constants import Defaults
from core.domain.models import (
    BankAccount,
    ReconciliationDiscrepancy,
    ReconciliationRecord,
    SplitInput,
    StockMovement,
    Transaction,
    TransactionSplit,
)
from core.types import BatchResult, Bucket, Category, MembershipType, PaymentStatus
from core.utils.timezone import DateLike
from engine.accounts.service import AccountService
from engine.balance.calculator import BalanceCalculator, BalanceResult
from engine.dues.renewal import DuesRenewalEngine, MemberDuesEntry, RenewalResult
from engine.inventory.stock import StockKeeper
from engine.inventory.synchronizer import InventorySynchronizer
from engine.reconciler.reconciler import Reconciler
from engine.reporting.reports import ReportGenerator
from engine.splits.ledger import SplitLedger
from engine.transactions.store import TransactionFilter, TransactionStore

logger = logging.getLogger(__name__)


class Ledger:
    """Ledger 파사드

    모든 공개 연산의 진입점. 각 연산은 하위 컴포넌트에 위임.

    Args:
        gateway: 문서 저장소
        members: 회원 디렉토리
        notifier: 알림 서비스
        home_country: Visiting 자격 판정 기준 국가
        overdue_days: 회비 연체 판정 일수
    """

    def __init__(
        self,
        gateway: IPersistenceGateway,
        members: IMemberDirectory,
        notifier: INotifier,
        home_country: str = Defaults.HOME_COUNTRY,
        overdue_days: int = Defaults.DUES_OVERDUE_DAYS,
    ):
        self.gateway = gateway
        self.stock = StockKeeper(gateway)
        self.inventory = InventorySynchronizer(gateway, self.stock)
        self.splits = SplitLedger(gateway)
        self.transactions = TransactionStore(gateway, self.splits, self.inventory)
        self.calculator = BalanceCalculator(gateway, self.splits)
        self.reconciler = Reconciler(gateway, self.calculator, self.splits)
        self.accounts = AccountService(gateway, self.calculator)
        self.dues = DuesRenewalEngine(
            self.transactions,
            members,
            notifier,
            home_country=home_country,
            overdue_days=overdue_days,
        )
        self.reports = ReportGenerator(self.transactions, self.splits, self.accounts, self.stock)

    # -------------------------------------------------------------------------
    # 거래
    # -------------------------------------------------------------------------

    async def create_transaction(self, data: dict[str, Any], actor: str = Defaults.SYSTEM_ACTOR) -> str:
        return await self.transactions.create(data, actor)

    async def update_transaction(
        self,
        transaction_id: str,
        partial: dict[str, Any],
        actor: str = Defaults.SYSTEM_ACTOR,
    ) -> None:
        await self.transactions.update(transaction_id, partial, actor)

    async def delete_transaction(self, transaction_id: str) -> None:
        await self.transactions.delete(transaction_id)

    async def get_all_transactions(self, filters: TransactionFilter | None = None) -> list[Transaction]:
        return await self.transactions.list(filters)

    async def get_transaction_by_id(self, transaction_id: str) -> Transaction | None:
        return await self.transactions.get_by_id(transaction_id)

    async def get_transactions_by_category(self, category: Category) -> list[Transaction]:
        return await self.transactions.get_by_category(category)

    async def get_project_transactions(self, project_id: str) -> list[Transaction]:
        return await self.transactions.get_project_transactions(project_id)

    async def batch_update_transaction_category(
        self,
        transaction_ids: list[str],
        category: Category,
    ) -> BatchResult:
        return await self.transactions.batch_update_category(transaction_ids, category)

    async def batch_delete_transactions(self, transaction_ids: list[str]) -> BatchResult:
        return await self.transactions.batch_delete(transaction_ids)

    # -------------------------------------------------------------------------
    # 분할
    # -------------------------------------------------------------------------

    async def create_splits(
        self,
        parent_id: str,
        splits: list[SplitInput],
        actor: str = Defaults.SYSTEM_ACTOR,
    ) -> list[str]:
        return await self.splits.upsert_splits(parent_id, splits, actor)

    async def update_split(self, split_id: str, partial: dict[str, Any]) -> None:
        await self.splits.update_split(split_id, partial)

    async def delete_split(self, split_id: str) -> None:
        await self.splits.delete_split(split_id)

    async def get_splits(self, parent_id: str) -> list[TransactionSplit]:
        return await self.splits.get_splits(parent_id)

    async def batch_update_split_category(self, split_ids: list[str], category: Category) -> BatchResult:
        return await self.splits.batch_update_category(split_ids, category)

    # -------------------------------------------------------------------------
    # 계좌 / 잔고 / 정산
    # -------------------------------------------------------------------------

    async def create_bank_account(self, data: dict[str, Any]) -> str:
        return await self.accounts.create(data)

    async def update_bank_account(self, account_id: str, partial: dict[str, Any]) -> None:
        await self.accounts.update(account_id, partial)

    async def get_bank_account(self, account_id: str) -> BankAccount:
        return await self.accounts.get(account_id)

    async def get_all_bank_accounts(self) -> list[BankAccount]:
        return await self.accounts.list()

    async def compute_system_balance(
        self,
        account_id: str,
        as_of: DateLike | None = None,
        category_filter: Bucket | None = None,
    ) -> BalanceResult:
        return await self.calculator.compute_balance(account_id, as_of, category_filter)

    async def detect_discrepancies(
        self,
        account_id: str,
        statement_balance: Decimal,
        date: DateLike,
    ) -> list[ReconciliationDiscrepancy]:
        return await self.reconciler.detect_discrepancies(account_id, statement_balance, date)

    async def reconcile_account(
        self,
        account_id: str,
        statement_balance: Decimal,
        date: DateLike,
        actor: str = Defaults.SYSTEM_ACTOR,
        notes: str | None = None,
        category_filter: Bucket | None = None,
    ) -> str:
        return await self.reconciler.reconcile(
            account_id, statement_balance, date, actor, notes, category_filter
        )

    async def get_reconciliation_history(self, account_id: str) -> list[ReconciliationRecord]:
        return await self.reconciler.get_history(account_id)

    # -------------------------------------------------------------------------
    # 회비
    # -------------------------------------------------------------------------

    async def initiate_dues_renewal(self, year: int) -> RenewalResult:
        return await self.dues.initiate_renewal(year)

    async def send_dues_reminders(self, year: int, days_overdue: int | None = None) -> int:
        return await self.dues.send_reminders(year, days_overdue)

    async def get_dues_renewal_status(self, year: int) -> dict[str, Any]:
        return await self.dues.get_dues_renewal_status(year)

    async def get_members_dues_list(
        self,
        membership_type: MembershipType | None = None,
        dues_year: int | None = None,
        payment_status: PaymentStatus | None = None,
        member_category: str | None = None,
    ) -> list[MemberDuesEntry]:
        return await self.dues.get_members_dues_list(
            membership_type, dues_year, payment_status, member_category
        )

    async def process_dues_payment(
        self,
        member_id: str,
        year: int,
        amount: Decimal,
        payment_date: DateLike,
    ) -> str:
        return await self.dues.process_dues_payment(member_id, year, amount, payment_date)

    # -------------------------------------------------------------------------
    # 재고
    # -------------------------------------------------------------------------

    async def adjust_stock(
        self,
        item_id: str,
        variant: str | None,
        delta: int,
        reason: str,
        actor: str = Defaults.SYSTEM_ACTOR,
    ) -> StockMovement:
        return await self.stock.adjust_stock(item_id, variant, delta, reason, actor)

    async def get_stock_card(self, item_id: str) -> list[StockMovement]:
        return await self.stock.get_stock_card(item_id)

    # -------------------------------------------------------------------------
    # 보고서
    # -------------------------------------------------------------------------

    async def get_financial_summary(self, year: int | None = None) -> dict[str, Any]:
        return await self.reports.financial_summary(year)

    async def generate_financial_report(
        self,
        report_type: str,
        year: int,
        month: int | None = None,
        fiscal_start_month: int = 1,
    ) -> dict[str, Any]:
        return await self.reports.financial_report(report_type, year, month, fiscal_start_month)

    async def generate_income_statement(self, year: int, fiscal_start_month: int = 1) -> dict[str, Any]:
        return await self.reports.income_statement(year, fiscal_start_month)

    async def generate_balance_sheet(self, year: int, as_of: DateLike | None = None) -> dict[str, Any]:
        return await self.reports.balance_sheet(year, as_of)

    async def generate_cash_flow_statement(self, year: int, fiscal_start_month: int = 1) -> dict[str, Any]:
        return await self.reports.cash_flow_statement(year, fiscal_start_month)


def create_notifier(settings: AppSettings) -> INotifier:
    """설정에 따라 알림 서비스 생성 (Webhook 없으면 로그 기록)"""
    if settings.slack_webhook_url:
        return SlackNotifier(webhook_url=settings.slack_webhook_url)
    logger.info("Slack webhook not configured, notifications will be logged only")
    return LogNotifier()


@asynccontextmanager
async def open_ledger(settings: AppSettings | None = None) -> AsyncIterator[Ledger]:
    """SQLite 기반 Ledger 생성 (연결/스키마/알림 생명주기 관리)

    사용 예시:
    ```python
    async with open_ledger() as ledger:
        await ledger.initiate_dues_renewal(2026)
    ```
    """
    settings = settings or get_settings().app
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)

    db = SQLiteAdapter(settings.db_path)
    await db.connect()
    notifier = create_notifier(settings)
    try:
        await init_schema(db)
        ledger = Ledger(
            SQLiteGateway(db),
            SQLiteMemberDirectory(db),
            notifier,
            home_country=settings.home_country,
            overdue_days=settings.overdue_days,
        )
        logger.info(f"Ledger opened: mode={settings.mode.value}, db={settings.db_path}")
        yield ledger
    finally:
        if isinstance(notifier, SlackNotifier):
            await notifier.close()
        await db.close()
