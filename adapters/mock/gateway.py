"""
In-Memory Persistence Gateway

테스트/개발용 메모리 문서 저장소.
IPersistenceGateway Protocol 준수.
"""

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any

from adapters.models import OrderBy, QueryFilter
from core.errors import GatewayError, RecordNotFound
from core.types import Collection


@dataclass
class GatewayState:
    """Mock 상태 (컬렉션 → id → 문서)"""

    collections: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)

    # 시뮬레이션 옵션: (operation, collection) → 남은 실패 횟수
    # collection이 None이면 해당 operation 전체 실패
    failures: dict[tuple[str, str | None], int] = field(default_factory=dict)

    # 호출 기록 (operation, collection, id)
    calls: list[tuple[str, str, str | None]] = field(default_factory=list)


class InMemoryGateway:
    """메모리 문서 저장소

    IPersistenceGateway Protocol 구현.
    저장/반환 시 deepcopy 하여 호출자와 상태를 공유하지 않음.

    사용 예시:
    ```python
    gateway = InMemoryGateway()
    tx_id = await gateway.create(Collection.TRANSACTIONS, {"amount": "100"})

    # 실패 시나리오
    gateway.fail_next("update", Collection.TRANSACTIONS)
    ```
    """

    def __init__(self, state: GatewayState | None = None):
        self.state = state or GatewayState()

    # -------------------------------------------------------------------------
    # 테스트 헬퍼
    # -------------------------------------------------------------------------

    def fail_next(
        self,
        operation: str,
        collection: Collection | None = None,
        times: int = 1,
    ) -> None:
        """다음 호출 실패 설정

        Args:
            operation: create / get / update / delete / query
            collection: 대상 컬렉션 (None이면 모든 컬렉션)
            times: 실패 횟수
        """
        key = (operation, collection.value if collection else None)
        self.state.failures[key] = times

    def count(self, collection: Collection) -> int:
        """컬렉션 문서 수"""
        return len(self._bucket(collection))

    def all(self, collection: Collection) -> list[dict[str, Any]]:
        """컬렉션 전체 문서 (복사본)"""
        return [self._with_id(rid, doc) for rid, doc in self._bucket(collection).items()]

    def calls_for(self, operation: str, collection: Collection) -> int:
        """특정 operation/컬렉션 호출 횟수"""
        return sum(
            1 for op, coll, _ in self.state.calls
            if op == operation and coll == collection.value
        )

    # -------------------------------------------------------------------------
    # IPersistenceGateway
    # -------------------------------------------------------------------------

    async def create(self, collection: Collection, record: dict[str, Any]) -> str:
        self._check_failure("create", collection)
        record = copy.deepcopy(record)
        record_id = record.pop("id", None) or str(uuid.uuid4())
        self.state.calls.append(("create", collection.value, record_id))
        self._bucket(collection)[record_id] = _drop_none(record)
        return record_id

    async def get(self, collection: Collection, record_id: str) -> dict[str, Any] | None:
        self._check_failure("get", collection)
        self.state.calls.append(("get", collection.value, record_id))
        doc = self._bucket(collection).get(record_id)
        return self._with_id(record_id, doc) if doc is not None else None

    async def update(
        self,
        collection: Collection,
        record_id: str,
        partial: dict[str, Any],
    ) -> None:
        self._check_failure("update", collection)
        self.state.calls.append(("update", collection.value, record_id))
        bucket = self._bucket(collection)
        if record_id not in bucket:
            raise RecordNotFound(collection.value, record_id)

        doc = bucket[record_id]
        for key, value in copy.deepcopy(partial).items():
            if key == "id":
                continue
            if value is None:
                doc.pop(key, None)
            else:
                doc[key] = value

    async def delete(self, collection: Collection, record_id: str) -> None:
        self._check_failure("delete", collection)
        self.state.calls.append(("delete", collection.value, record_id))
        self._bucket(collection).pop(record_id, None)

    async def query(
        self,
        collection: Collection,
        filters: list[QueryFilter] | None = None,
        order_by: OrderBy | None = None,
    ) -> list[dict[str, Any]]:
        self._check_failure("query", collection)
        self.state.calls.append(("query", collection.value, None))
        results = [
            self._with_id(rid, doc)
            for rid, doc in self._bucket(collection).items()
            if all(f.matches(self._with_id(rid, doc)) for f in filters or [])
        ]
        if order_by is not None:
            # 필드 없는 문서는 뒤로
            present = [r for r in results if r.get(order_by.field) is not None]
            missing = [r for r in results if r.get(order_by.field) is None]
            present.sort(key=lambda r: r[order_by.field], reverse=order_by.descending)
            results = present + missing
        return results

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    def _bucket(self, collection: Collection) -> dict[str, dict[str, Any]]:
        return self.state.collections.setdefault(collection.value, {})

    @staticmethod
    def _with_id(record_id: str, doc: dict[str, Any]) -> dict[str, Any]:
        result = copy.deepcopy(doc)
        result["id"] = record_id
        return result

    def _check_failure(self, operation: str, collection: Collection) -> None:
        for key in ((operation, collection.value), (operation, None)):
            remaining = self.state.failures.get(key, 0)
            if remaining > 0:
                self.state.failures[key] = remaining - 1
                raise GatewayError(f"Simulated {operation} failure on {collection.value}")


def _drop_none(record: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in record.items() if v is not None}
