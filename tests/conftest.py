"""
pytest 공통 fixture 정의

InMemory 어댑터 기반 Ledger 및 샘플 데이터 fixture
"""

import tempfile
from pathlib import Path
from typing import Any, Awaitable, Callable

import pytest
import pytest_asyncio

from adapters.mock import InMemoryGateway, InMemoryMemberDirectory, MockNotifier
from core.config.loader import Settings
from core.types import Category, TransactionType
from engine.bootstrap import Ledger

TxFactory = Callable[..., Awaitable[str]]


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_settings():
    """Settings 싱글턴 초기화 (테스트 간 격리)"""
    Settings.reset()
    yield
    Settings.reset()


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def members() -> InMemoryMemberDirectory:
    return InMemoryMemberDirectory()


@pytest.fixture
def notifier() -> MockNotifier:
    return MockNotifier()


@pytest.fixture
def ledger(
    gateway: InMemoryGateway,
    members: InMemoryMemberDirectory,
    notifier: MockNotifier,
) -> Ledger:
    """InMemory 저장소 기반 Ledger"""
    return Ledger(gateway, members, notifier, home_country="Malaysia", overdue_days=30)


@pytest_asyncio.fixture
async def account_id(ledger: Ledger) -> str:
    """opening balance 1000 계좌"""
    return await ledger.create_bank_account(
        {"name": "Maybank Current", "initial_balance": "1000"}
    )


@pytest.fixture
def make_tx(ledger: Ledger) -> TxFactory:
    """거래 생성 헬퍼

    사용 예시:
    ```python
    tx_id = await make_tx(amount="500", type=TransactionType.INCOME)
    ```
    """

    async def factory(**overrides: Any) -> str:
        data: dict[str, Any] = {
            "date": "2026-03-01",
            "description": "Chapter event",
            "amount": "100",
            "type": TransactionType.INCOME,
            "category": Category.PROJECTS,
        }
        data.update(overrides)
        return await ledger.create_transaction(data)

    return factory
