#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Shared snapshot loading for balance-engine commands."""

from __future__ import annotations

from typing import Tuple

from balance_engine.config import EngineConfig
from balance_engine.engine import ReconciliationResult, reconcile
from balance_engine.models import Snapshot
from balance_engine.utils import load_json_input


def load_snapshot(args) -> Snapshot:
    return Snapshot.from_dict(load_json_input(args.input))


def engine_config(args, snapshot: Snapshot) -> EngineConfig:
    return EngineConfig.from_settings(
        snapshot.settings,
        default_exchange_rate=args.default_rate,
        anomaly_threshold=args.threshold,
        match_strategy=args.match,
    )


def load_result(args) -> Tuple[Snapshot, EngineConfig, ReconciliationResult]:
    snapshot = load_snapshot(args)
    config = engine_config(args, snapshot)
    return snapshot, config, reconcile(snapshot, config)
