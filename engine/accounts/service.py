"""
Bank Account Service

은행 계좌 CRUD. 조회 시 balance는 BalanceCalculator로 재계산 (저장 값 아님).
"""

import logging
from typing import Any

from adapters.interfaces import IPersistenceGateway
from adapters.models import OrderBy
from core.constants import Defaults
from core.domain.models import BankAccount
from core.errors import AccountNotFound, ValidationError
from core.types import Collection
from core.utils.money import money_str, to_decimal
from core.utils.timezone import now_utc, to_iso
from engine.balance.calculator import BalanceCalculator

logger = logging.getLogger(__name__)

# 파생/정산 관리 필드 (직접 수정 불가)
_READONLY_FIELDS = frozenset({"id", "balance", "created_at", "updated_at"})


class AccountService:
    """은행 계좌 서비스

    Args:
        gateway: 문서 저장소
        calculator: BalanceCalculator (파생 잔고)
    """

    def __init__(self, gateway: IPersistenceGateway, calculator: BalanceCalculator):
        self.gateway = gateway
        self.calculator = calculator

    async def create(self, data: dict[str, Any]) -> str:
        """계좌 생성

        Args:
            data: name(필수), currency, initial_balance
        """
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Bank account name is required")

        now = to_iso(now_utc())
        account = BankAccount(
            id="",
            name=name,
            currency=data.get("currency") or Defaults.CURRENCY,
            initial_balance=to_decimal(data.get("initial_balance")),
            created_at=now,
            updated_at=now,
        )
        account_id = await self.gateway.create(Collection.BANK_ACCOUNTS, account.to_dict())
        logger.info(f"Bank account created: {account_id} {name}")
        return account_id

    async def get(self, account_id: str) -> BankAccount:
        """계좌 조회 (파생 잔고 포함)

        Raises:
            AccountNotFound: 계좌 없음
        """
        account = await self.calculator.load_account(account_id)
        return await self._with_balance(account)

    async def list(self) -> list[BankAccount]:
        """전체 계좌 (이름순, 파생 잔고 포함)"""
        docs = await self.gateway.query(Collection.BANK_ACCOUNTS, order_by=OrderBy("name"))
        return [await self._with_balance(BankAccount.from_dict(d)) for d in docs]

    async def update(self, account_id: str, partial: dict[str, Any]) -> None:
        """계좌 수정 (name, currency, initial_balance)"""
        doc = await self.gateway.get(Collection.BANK_ACCOUNTS, account_id)
        if doc is None:
            raise AccountNotFound(account_id)

        patch = {k: v for k, v in partial.items() if k not in _READONLY_FIELDS}
        if "initial_balance" in patch and patch["initial_balance"] is not None:
            patch["initial_balance"] = money_str(to_decimal(patch["initial_balance"]))
        if "name" in patch and not (patch["name"] or "").strip():
            raise ValidationError("Bank account name is required")

        patch["updated_at"] = to_iso(now_utc())
        await self.gateway.update(Collection.BANK_ACCOUNTS, account_id, patch)

    async def _with_balance(self, account: BankAccount) -> BankAccount:
        result = await self.calculator.compute_balance(account.id)
        account.balance = result.total
        return account
