"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from typing import Any, Protocol, runtime_checkable

from adapters.models import OrderBy, QueryFilter
from core.types import Collection


@runtime_checkable
class IPersistenceGateway(Protocol):
    """문서 저장소 인터페이스

    이름 있는 컬렉션 단위 CRUD + 필터/정렬 질의.
    다중 문서 트랜잭션은 제공하지 않음 (각 호출이 독립적인 쓰기).
    날짜 필드는 정렬 가능한 UTC ISO-8601 문자열로 저장/반환.
    """

    async def create(self, collection: Collection, record: dict[str, Any]) -> str:
        """문서 생성

        Args:
            collection: 대상 컬렉션
            record: 문서 (id 키가 있으면 그 id 사용)

        Returns:
            생성된 문서 id
        """
        ...

    async def get(self, collection: Collection, record_id: str) -> dict[str, Any] | None:
        """문서 조회

        Returns:
            id 키가 포함된 문서 또는 None
        """
        ...

    async def update(
        self,
        collection: Collection,
        record_id: str,
        partial: dict[str, Any],
    ) -> None:
        """문서 부분 갱신 (병합)

        값이 None인 키는 필드 삭제로 처리.

        Raises:
            RecordNotFound: 대상 문서 없음
        """
        ...

    async def delete(self, collection: Collection, record_id: str) -> None:
        """문서 삭제 (없으면 무시)"""
        ...

    async def query(
        self,
        collection: Collection,
        filters: list[QueryFilter] | None = None,
        order_by: OrderBy | None = None,
    ) -> list[dict[str, Any]]:
        """필터/정렬 질의

        Args:
            filters: AND 결합 필터 목록
            order_by: 정렬 조건 (없으면 저장 순서)

        Returns:
            id 키가 포함된 문서 목록
        """
        ...


@runtime_checkable
class IMemberDirectory(Protocol):
    """회원 디렉토리 인터페이스

    회원 레코드는 외부 시스템 소유. 회비 엔진은 조회와 회비 상태 갱신만 수행.
    """

    async def get_member(self, member_id: str) -> dict[str, Any] | None:
        """회원 조회 (id 키 포함 dict 또는 None)"""
        ...

    async def list_members(self) -> list[dict[str, Any]]:
        """전체 회원 목록"""
        ...

    async def update_member(self, member_id: str, partial: dict[str, Any]) -> None:
        """회원 필드 갱신 (dues_status, dues_year 등)"""
        ...


@runtime_checkable
class INotifier(Protocol):
    """알림 서비스 인터페이스

    회비 갱신/리마인더 알림을 외부 서비스로 전송.
    전송 실패는 예외가 아니라 False 반환으로 표현.
    """

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """알림 전송

        Args:
            message: 알림 메시지
            level: 알림 레벨 (INFO, WARNING, ERROR, CRITICAL)
            extra: 추가 데이터 (선택)

        Returns:
            전송 성공 여부
        """
        ...

    async def notify_member(
        self,
        member_id: str,
        title: str,
        message: str,
        level: str = "INFO",
    ) -> bool:
        """회원 대상 알림 전송 (포맷팅된 메시지)

        Args:
            member_id: 수신 회원 id
            title: 알림 제목
            message: 본문

        Returns:
            전송 성공 여부
        """
        ...
