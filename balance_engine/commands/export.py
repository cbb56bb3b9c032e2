#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""balance-engine export command."""

from __future__ import annotations

from balance_engine.commands.common import load_result
from balance_engine.io import ExcelWriter
from balance_engine.utils import print_json


def add_parser(subparsers, parents):
    parser = subparsers.add_parser("export", help="导出 Excel", parents=parents)
    parser.add_argument("--output", required=True, help="输出 .xlsx 路径")
    parser.set_defaults(func=run)
    return parser


def run(args):
    _, _, result = load_result(args)
    writer = ExcelWriter()
    writer.write_reconciliation(result.to_dict())
    path = writer.save(args.output)
    print_json({
        "status": "success",
        "output": path,
        "is_balanced": result.balance_sheet.is_balanced,
        "corrections": len(result.corrections),
    }, args.compact)
