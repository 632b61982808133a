"""
Accounts 모듈

은행 계좌 관리 (파생 잔고)
"""

from engine.accounts.service import AccountService

__all__ = ["AccountService"]
