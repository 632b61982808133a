"""
SQLiteGateway - 문서 저장소 구현

documents 테이블(JSON 문서)을 통해 IPersistenceGateway 제공.
필터/정렬은 json_extract로 처리.

주의: 다중 문서 트랜잭션은 제공하지 않음. 각 호출은 독립적으로 커밋.
"""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import FilterOp, OrderBy, QueryFilter
from core.errors import GatewayError, RecordNotFound
from core.types import Collection

logger = logging.getLogger(__name__)


# json_extract 경로에 들어갈 필드 이름 (SQL 주입 방지)
_FIELD_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_SQL_OPS: dict[FilterOp, str] = {
    FilterOp.EQ: "=",
    FilterOp.LT: "<",
    FilterOp.LE: "<=",
    FilterOp.GT: ">",
    FilterOp.GE: ">=",
}


def _json_path(field_name: str) -> str:
    if not _FIELD_PATTERN.match(field_name):
        raise GatewayError(f"Invalid field name: {field_name!r}")
    if field_name == "id":
        return "doc_id"
    return f"json_extract(body_json, '$.{field_name}')"


def _sql_value(value: Any) -> Any:
    # json_extract는 true/false를 1/0으로 반환
    if isinstance(value, bool):
        return int(value)
    return value


def build_where(filters: list[QueryFilter]) -> tuple[str, list[Any]]:
    """필터 목록 → WHERE 절 조각 + 파라미터

    Returns:
        ("AND ..." 형태 SQL, 파라미터 목록)
    """
    clauses: list[str] = []
    params: list[Any] = []

    for f in filters:
        expr = _json_path(f.field)
        if f.op == FilterOp.IN:
            values = list(f.value)
            if not values:
                clauses.append("0")
                continue
            placeholders = ", ".join("?" for _ in values)
            clauses.append(f"{expr} IN ({placeholders})")
            params.extend(_sql_value(v) for v in values)
        elif f.op == FilterOp.NE:
            if f.value is None:
                clauses.append(f"{expr} IS NOT NULL")
            else:
                clauses.append(f"({expr} IS NULL OR {expr} != ?)")
                params.append(_sql_value(f.value))
        else:
            clauses.append(f"{expr} {_SQL_OPS[f.op]} ?")
            params.append(_sql_value(f.value))

    sql = "".join(f" AND {c}" for c in clauses)
    return sql, params


class SQLiteGateway:
    """SQLite 문서 저장소

    IPersistenceGateway Protocol 구현.

    Args:
        db: 연결된 SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        gateway = SQLiteGateway(db)
        tx_id = await gateway.create(Collection.TRANSACTIONS, {...})
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create(self, collection: Collection, record: dict[str, Any]) -> str:
        body = {k: v for k, v in record.items() if v is not None}
        record_id = body.pop("id", None) or str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()

        try:
            async with self.db.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO documents (collection, doc_id, body_json, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (collection.value, record_id, json.dumps(body, ensure_ascii=False), now, now),
                )
        except Exception as e:
            logger.error(
                f"Failed to create document: {e}",
                extra={"collection": collection.value, "doc_id": record_id},
            )
            raise GatewayError(f"create {collection.value} failed: {e}") from e

        return record_id

    async def get(self, collection: Collection, record_id: str) -> dict[str, Any] | None:
        try:
            row = await self.db.fetchone(
                """
                SELECT body_json
                FROM documents
                WHERE collection = ? AND doc_id = ?
                """,
                (collection.value, record_id),
            )
        except Exception as e:
            logger.error(f"Failed to get document {collection.value}/{record_id}: {e}")
            raise GatewayError(f"get {collection.value} failed: {e}") from e

        if row is None:
            return None
        return self._decode(record_id, row[0])

    async def update(
        self,
        collection: Collection,
        record_id: str,
        partial: dict[str, Any],
    ) -> None:
        now = datetime.now(timezone.utc).isoformat()

        try:
            async with self.db.transaction() as conn:
                cursor = await conn.execute(
                    "SELECT body_json FROM documents WHERE collection = ? AND doc_id = ?",
                    (collection.value, record_id),
                )
                row = await cursor.fetchone()
                if row is None:
                    raise RecordNotFound(collection.value, record_id)

                body = json.loads(row[0])
                for key, value in partial.items():
                    if key == "id":
                        continue
                    if value is None:
                        body.pop(key, None)
                    else:
                        body[key] = value

                await conn.execute(
                    """
                    UPDATE documents
                    SET body_json = ?, updated_at = ?
                    WHERE collection = ? AND doc_id = ?
                    """,
                    (json.dumps(body, ensure_ascii=False), now, collection.value, record_id),
                )
        except RecordNotFound:
            raise
        except Exception as e:
            logger.error(
                f"Failed to update document: {e}",
                extra={"collection": collection.value, "doc_id": record_id},
            )
            raise GatewayError(f"update {collection.value} failed: {e}") from e

    async def delete(self, collection: Collection, record_id: str) -> None:
        try:
            async with self.db.transaction() as conn:
                await conn.execute(
                    "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                    (collection.value, record_id),
                )
        except Exception as e:
            logger.error(f"Failed to delete document {collection.value}/{record_id}: {e}")
            raise GatewayError(f"delete {collection.value} failed: {e}") from e

    async def query(
        self,
        collection: Collection,
        filters: list[QueryFilter] | None = None,
        order_by: OrderBy | None = None,
    ) -> list[dict[str, Any]]:
        where_sql, params = build_where(filters or [])

        order_sql = "seq"
        if order_by is not None:
            expr = _json_path(order_by.field)
            direction = "DESC" if order_by.descending else "ASC"
            # 필드 없는 문서는 뒤로
            order_sql = f"{expr} IS NULL, {expr} {direction}, seq"

        sql = f"""
            SELECT doc_id, body_json
            FROM documents
            WHERE collection = ?{where_sql}
            ORDER BY {order_sql}
        """

        try:
            rows = await self.db.fetchall(sql, (collection.value, *params))
        except Exception as e:
            logger.error(f"Failed to query {collection.value}: {e}")
            raise GatewayError(f"query {collection.value} failed: {e}") from e

        return [self._decode(row[0], row[1]) for row in rows]

    @staticmethod
    def _decode(record_id: str, body_json: str) -> dict[str, Any]:
        body = json.loads(body_json) if isinstance(body_json, str) else dict(body_json)
        body["id"] = record_id
        return body
