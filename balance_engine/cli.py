#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Main CLI for balance-engine."""

from __future__ import annotations

import argparse
import logging
import sys

from balance_engine import commands
from balance_engine.config import MATCH_STRATEGIES
from balance_engine.utils import EngineError, handle_error


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="balance-engine",
        description="往来对账与资产负债表 CLI",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--input", "-i", help="快照 JSON 文件（缺省读 stdin）")
    common.add_argument("--default-rate", type=float, help="默认汇率（覆盖 settings）")
    common.add_argument("--threshold", type=float, help="异常金额阈值")
    common.add_argument("--match", choices=MATCH_STRATEGIES, help="对手匹配策略")
    common.add_argument("--compact", action="store_true", help="紧凑 JSON 输出")
    common.add_argument("--verbose", "-v", action="store_true", help="在 stderr 输出日志")

    subparsers = parser.add_subparsers(dest="command")

    commands.add_calc_parser(subparsers, [common])
    commands.add_debts_parser(subparsers, [common])
    commands.add_report_parser(subparsers, [common])
    commands.add_client_parser(subparsers, [common])
    commands.add_export_parser(subparsers, [common])

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except EngineError as exc:
        handle_error(exc)


if __name__ == "__main__":
    main()
