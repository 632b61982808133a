"""
데이터베이스 어댑터

SQLite WAL 모드 연결 관리 + JSON 문서 저장소.
"""

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    get_db_path,
    create_connection,
    init_schema,
)
from adapters.db.sqlite_gateway import SQLiteGateway
from adapters.db.member_directory import SQLiteMemberDirectory

__all__ = [
    "SQLiteAdapter",
    "get_db_path",
    "create_connection",
    "init_schema",
    "SQLiteGateway",
    "SQLiteMemberDirectory",
]
