"""
어댑터 레이어

외부 서비스(문서 저장소, 회원 디렉토리, 알림)와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import (
    IPersistenceGateway,
    IMemberDirectory,
    INotifier,
)
from adapters.models import (
    FilterOp,
    QueryFilter,
    OrderBy,
)

__all__ = [
    # Interfaces
    "IPersistenceGateway",
    "IMemberDirectory",
    "INotifier",
    # Models
    "FilterOp",
    "QueryFilter",
    "OrderBy",
]
