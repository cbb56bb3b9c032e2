#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""balance-engine history / unpaid commands."""

from __future__ import annotations

from balance_engine.commands.common import load_result
from balance_engine.reporting import debt_history, unpaid_items
from balance_engine.utils import print_json


def add_parser(subparsers, parents):
    history = subparsers.add_parser("history", help="客户债务流水", parents=parents)
    history.add_argument("--client", required=True, help="客户 ID")
    history.set_defaults(func=run_history)

    unpaid = subparsers.add_parser("unpaid", help="客户未结清明细", parents=parents)
    unpaid.add_argument("--client", required=True, help="客户 ID")
    unpaid.set_defaults(func=run_unpaid)
    return history


def run_history(args):
    _, _, result = load_result(args)
    events = debt_history(result, args.client)
    debt = result.debt_for(args.client)
    print_json({
        "client_id": args.client,
        "total_debt": round(debt.total_debt, 2),
        "history": events,
    }, args.compact)


def run_unpaid(args):
    _, _, result = load_result(args)
    items = unpaid_items(result, args.client)
    debt = result.debt_for(args.client)
    print_json({
        "client_id": args.client,
        "total_debt": round(debt.total_debt, 2),
        "items": items,
    }, args.compact)
