"""
Mock 어댑터

테스트용 Mock 구현체 제공.
Protocol 준수하여 실제 구현체와 교체 가능.
"""

from adapters.mock.gateway import InMemoryGateway, GatewayState
from adapters.mock.member_directory import InMemoryMemberDirectory
from adapters.mock.notifier import MockNotifier, NotificationRecord

__all__ = [
    "InMemoryGateway",
    "GatewayState",
    "InMemoryMemberDirectory",
    "MockNotifier",
    "NotificationRecord",
]
