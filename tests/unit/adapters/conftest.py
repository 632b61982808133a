"""
어댑터 테스트 픽스처

SQLite 어댑터/Gateway 픽스처 제공.
"""

from pathlib import Path
from typing import AsyncGenerator

import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.db.sqlite_gateway import SQLiteGateway


@pytest_asyncio.fixture
async def sqlite_db(tmp_path: Path) -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마 초기화된 임시 SQLite DB"""
    adapter = SQLiteAdapter(tmp_path / "ledger_test.db")
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def sqlite_gateway(sqlite_db: SQLiteAdapter) -> SQLiteGateway:
    return SQLiteGateway(sqlite_db)
