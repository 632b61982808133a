"""
In-Memory 회원 디렉토리

테스트용 IMemberDirectory 구현.
"""

import copy
from typing import Any

from core.errors import MemberNotFound


class InMemoryMemberDirectory:
    """메모리 회원 디렉토리

    사용 예시:
    ```python
    directory = InMemoryMemberDirectory()
    directory.add({"id": "m1", "name": "Aisyah", "membership_type": "Full"})
    ```
    """

    def __init__(self, members: list[dict[str, Any]] | None = None):
        self.members: dict[str, dict[str, Any]] = {}
        self.updates: list[tuple[str, dict[str, Any]]] = []
        for member in members or []:
            self.add(member)

    def add(self, member: dict[str, Any]) -> None:
        """회원 추가 (id 필수)"""
        self.members[member["id"]] = copy.deepcopy(member)

    async def get_member(self, member_id: str) -> dict[str, Any] | None:
        member = self.members.get(member_id)
        return copy.deepcopy(member) if member is not None else None

    async def list_members(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(m) for m in self.members.values()]

    async def update_member(self, member_id: str, partial: dict[str, Any]) -> None:
        if member_id not in self.members:
            raise MemberNotFound(member_id)
        self.updates.append((member_id, copy.deepcopy(partial)))
        self.members[member_id].update(copy.deepcopy(partial))
