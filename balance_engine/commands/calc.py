#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""balance-engine calc / check commands."""

from __future__ import annotations

from balance_engine.commands.common import engine_config, load_result, load_snapshot
from balance_engine.reporting import check_snapshot
from balance_engine.utils import print_json


def add_parser(subparsers, parents):
    parser = subparsers.add_parser("calc", help="完整对账（资产负债表、修正、欠款）", parents=parents)
    parser.add_argument("--balance-only", action="store_true", help="只输出资产负债表")
    parser.set_defaults(func=run)

    check = subparsers.add_parser("check", help="校验快照数据", parents=parents)
    check.set_defaults(func=run_check)
    return parser


def run(args):
    _, _, result = load_result(args)
    if args.balance_only:
        print_json(result.balance_sheet.to_dict(), args.compact)
    else:
        print_json(result.to_dict(), args.compact)


def run_check(args):
    snapshot = load_snapshot(args)
    print_json(check_snapshot(snapshot, engine_config(args, snapshot)), args.compact)
