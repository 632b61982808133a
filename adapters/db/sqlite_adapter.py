"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Web 서버와 CLI(회비 갱신 배치)가 동시에 접근 가능하도록 설정.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Paths
from core.types import AppMode, Collection

logger = logging.getLogger(__name__)


def get_db_path(mode: AppMode | str) -> Path:
    """모드에 따른 DB 경로 반환

    Args:
        mode: 실행 모드 (PRODUCTION/DEVELOPMENT)

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if isinstance(mode, str):
        mode = AppMode(mode.lower())

    if mode == AppMode.PRODUCTION:
        return Paths.PROD_DB
    return Paths.DEV_DB


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)
    
    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부
        
    Returns:
        aiosqlite 연결 객체
    """
    # pathlib.Path를 문자열로 변환
    db_path_str = str(db_path)
    
    # 디렉토리가 없으면 생성
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)
    
    # 연결 생성
    if readonly:
        # 읽기 전용 모드
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True)
    else:
        conn = await aiosqlite.connect(db_path_str)
    
    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")
    
    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기
    
    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")
    
    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )
    
    return conn


class SQLiteAdapter:
    """SQLite 어댑터
    
    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.
    
    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (리포트 조회용)
    
    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()
    
    async with adapter.transaction() as conn:
        await conn.execute("INSERT INTO ...")
    
    await adapter.close()
    ```
    """
    
    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
    
    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None
    
    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return
        
        self._conn = await create_connection(self.db_path, self.readonly)
    
    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")
    
    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        
        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)
    
    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        
        return await self._conn.executemany(sql, parameters)
    
    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()
    
    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchall()
    
    async def commit(self) -> None:
        """커밋"""
        if self._conn is not None:
            await self._conn.commit()
    
    async def rollback(self) -> None:
        """롤백"""
        if self._conn is not None:
            await self._conn.rollback()
    
    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저
        
        성공 시 자동 커밋, 예외 시 자동 롤백.
        
        사용 예시:
        ```python
        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        
        try:
            yield self._conn
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise
    
    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None
    
    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------
    
    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self
    
    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()




# 자주 필터링되는 필드 (json_extract 표현식 인덱스)
INDEXED_FIELDS: dict[Collection, tuple[str, ...]] = {
    Collection.TRANSACTIONS: ("bank_account_id", "date", "category", "member_id"),
    Collection.TRANSACTION_SPLITS: ("parent_transaction_id",),
    Collection.RECONCILIATIONS: ("bank_account_id",),
    Collection.STOCK_MOVEMENTS: ("reference_id", "item_id"),
}


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    모든 컬렉션을 단일 documents 테이블에 JSON 문서로 저장.
    날짜는 UTC ISO-8601 문자열이므로 문자열 비교 = 시간 비교.

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS documents (
            seq              INTEGER PRIMARY KEY AUTOINCREMENT,
            collection       TEXT NOT NULL,
            doc_id           TEXT NOT NULL,
            body_json        TEXT NOT NULL,

            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(collection, doc_id)
        )
    """)

    # members (외부 회원 디렉토리의 로컬 사본)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS members (
            member_id        TEXT PRIMARY KEY,
            body_json        TEXT NOT NULL,
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_documents_collection
        ON documents(collection)
    """)

    for collection, fields in INDEXED_FIELDS.items():
        for field_name in fields:
            await adapter.execute(f"""
                CREATE INDEX IF NOT EXISTS ix_{collection.value}_{field_name}
                ON documents(collection, json_extract(body_json, '$.{field_name}'))
            """)

    await adapter.commit()

    logger.info("스키마 초기화 완료")
