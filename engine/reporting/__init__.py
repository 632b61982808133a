"""
Reporting 모듈

읽기 전용 재무 보고서
"""

from engine.reporting.reports import ReportGenerator, ReportPeriod, fiscal_period, month_period

__all__ = [
    "ReportGenerator",
    "ReportPeriod",
    "fiscal_period",
    "month_period",
]
