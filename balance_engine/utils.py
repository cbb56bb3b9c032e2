#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Shared helpers for the balance engine and its CLI."""

from __future__ import annotations

import json
import math
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class EngineError(Exception):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "error": True,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


_NON_NUMERIC = re.compile(r"[^\d.\-]")


def num(value: Any) -> float:
    """安全解析数值：非有限数、无法解析的字符串一律为 0。"""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value.replace(" ", "").replace(",", "."))
        try:
            parsed = float(cleaned)
        except ValueError:
            return 0.0
        return parsed if math.isfinite(parsed) else 0.0
    return 0.0


def load_json_input(path: Optional[str] = None) -> Dict[str, Any]:
    """Load a JSON object from a file path, or from stdin when no path is given."""
    try:
        if path and path != "-":
            with Path(path).open(encoding="utf-8") as fh:
                data = json.load(fh)
        else:
            data = json.load(sys.stdin)
    except json.JSONDecodeError as exc:
        raise EngineError(
            code="INVALID_JSON",
            message=f"无效的 JSON 输入: {exc}",
        ) from exc
    except OSError as exc:
        raise EngineError(
            code="INPUT_NOT_READABLE",
            message=f"无法读取输入文件: {path}",
        ) from exc

    if not isinstance(data, dict):
        raise EngineError(
            code="INVALID_JSON",
            message="输入必须是 JSON 对象（键值对）",
        )
    return data


def print_json(data: Dict[str, Any], compact: bool = False) -> None:
    if compact:
        print(json.dumps(data, ensure_ascii=False))
    else:
        print(json.dumps(data, ensure_ascii=False, indent=2))


def print_error(err: EngineError) -> None:
    print_json(err.to_dict())


def handle_error(err: EngineError) -> None:
    print_error(err)
    sys.exit(1)
