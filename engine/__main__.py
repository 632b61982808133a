"""
Ledger CLI 진입점

실행 방법:
    python -m engine renew --year 2026
    python -m engine remind --year 2026 --days 30
    python -m engine status --year 2026
"""

import argparse
import asyncio
import json
import logging

from core.logging import setup_logging
from engine.bootstrap import open_ledger

logger = logging.getLogger("engine")


async def main(args: argparse.Namespace) -> None:
    async with open_ledger() as ledger:
        if args.command == "renew":
            result = (await ledger.initiate_dues_renewal(args.year)).to_dict()
        elif args.command == "remind":
            result = {"reminders_sent": await ledger.send_dues_reminders(args.year, args.days)}
        else:
            result = await ledger.get_dues_renewal_status(args.year)

    logger.info(f"{args.command} finished for {args.year}")
    print(json.dumps(result, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chapter Ledger 회비 작업")
    sub = parser.add_subparsers(dest="command", required=True)

    renew = sub.add_parser("renew", help="연회비 갱신 시작")
    renew.add_argument("--year", type=int, required=True)

    remind = sub.add_parser("remind", help="연체 회비 리마인더 발송")
    remind.add_argument("--year", type=int, required=True)
    remind.add_argument("--days", type=int, default=None, help="연체 기준 일수 (기본: 설정값)")

    status = sub.add_parser("status", help="연도별 회비 현황")
    status.add_argument("--year", type=int, required=True)

    return parser


def run() -> None:
    setup_logging("cli")
    asyncio.run(main(build_parser().parse_args()))


if __name__ == "__main__":
    run()
