#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""balance-engine diagnose / explain commands."""

from __future__ import annotations

from balance_engine.commands.common import load_result
from balance_engine.reporting import diagnose, explain
from balance_engine.utils import print_json


def add_parser(subparsers, parents):
    parser = subparsers.add_parser("diagnose", help="诊断对账结果", parents=parents)
    parser.set_defaults(func=run_diagnose)

    explain_cmd = subparsers.add_parser("explain", help="追溯解释某个字段", parents=parents)
    explain_cmd.add_argument("--field", required=True, help="字段名，如 retained_earnings")
    explain_cmd.set_defaults(func=run_explain)
    return parser


def run_diagnose(args):
    _, config, result = load_result(args)
    print_json(diagnose(result, config), args.compact)


def run_explain(args):
    _, _, result = load_result(args)
    print_json(explain(result, args.field), args.compact)
