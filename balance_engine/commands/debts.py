#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""balance-engine debts / corrections commands."""

from __future__ import annotations

from balance_engine.commands.common import load_result
from balance_engine.utils import print_json


def add_parser(subparsers, parents):
    parser = subparsers.add_parser("debts", help="客户与供应商重算欠款", parents=parents)
    parser.add_argument("--role", choices=["client", "supplier"], help="只输出一方")
    parser.add_argument("--changed-only", action="store_true", help="只输出需要写回的对手")
    parser.set_defaults(func=run)

    corrections = subparsers.add_parser("corrections", help="异常金额修正记录", parents=parents)
    corrections.set_defaults(func=run_corrections)
    return parser


def run(args):
    _, _, result = load_result(args)
    if args.changed_only:
        updates = result.debt_updates()
        if args.role:
            updates = [u for u in updates if u["role"] == args.role]
        print_json({"debt_updates": updates}, args.compact)
        return

    debts = result.debts
    if args.role:
        debts = [d for d in debts if d.role == args.role]
    print_json({
        "debts": [d.to_dict() for d in debts],
        "accounts_receivable": round(result.balance_sheet.accounts_receivable, 2),
        "accounts_payable": round(result.balance_sheet.accounts_payable, 2),
    }, args.compact)


def run_corrections(args):
    _, _, result = load_result(args)
    print_json({
        "corrections": [c.to_dict() for c in result.corrections],
        "suspicious_amounts": result.diagnostics.suspicious_amounts,
    }, args.compact)
