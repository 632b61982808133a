"""
SQLiteMemberDirectory - 회원 디렉토리 로컬 사본

members 테이블(JSON 문서)을 통해 IMemberDirectory 제공.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import MemberNotFound

logger = logging.getLogger(__name__)


class SQLiteMemberDirectory:
    """SQLite 회원 디렉토리

    Args:
        db: 연결된 SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get_member(self, member_id: str) -> dict[str, Any] | None:
        row = await self.db.fetchone(
            "SELECT body_json FROM members WHERE member_id = ?",
            (member_id,),
        )
        if row is None:
            return None
        member = json.loads(row[0])
        member["id"] = member_id
        return member

    async def list_members(self) -> list[dict[str, Any]]:
        rows = await self.db.fetchall("SELECT member_id, body_json FROM members ORDER BY member_id")
        members = []
        for member_id, body_json in rows:
            member = json.loads(body_json)
            member["id"] = member_id
            members.append(member)
        return members

    async def upsert_member(self, member: dict[str, Any]) -> None:
        """회원 등록/교체 (외부 디렉토리 동기화용)"""
        body = {k: v for k, v in member.items() if k != "id" and v is not None}
        now = datetime.now(timezone.utc).isoformat()
        await self.db.execute(
            """
            INSERT INTO members (member_id, body_json, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(member_id) DO UPDATE SET
                body_json = excluded.body_json,
                updated_at = excluded.updated_at
            """,
            (member["id"], json.dumps(body, ensure_ascii=False), now),
        )
        await self.db.commit()

    async def update_member(self, member_id: str, partial: dict[str, Any]) -> None:
        current = await self.get_member(member_id)
        if current is None:
            raise MemberNotFound(member_id)

        current.update(partial)
        await self.upsert_member(current)
        logger.debug(f"Member updated: {member_id} {sorted(partial)}")
