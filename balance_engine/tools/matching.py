# -*- coding: utf-8 -*-
"""
matching.py - 交易对手归属

把订单/采购单/交易归属到客户或供应商。匹配打分：
    3 = 存储的对手 id 完全一致
    2 = 名称或公司名完全一致（忽略大小写与首尾空格）
    1 = 名称双向包含（仅模糊策略）
    0 = 不匹配

每条记录只归属给得分最高的一个对手；同分时按对手 id 排序取第一个，
保证结果与数组顺序无关。
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from balance_engine.config import DEFAULT_MATCH_STRATEGY
from balance_engine.models.events import Counterparty
from balance_engine.utils import EngineError

logger = logging.getLogger(__name__)

EXACT_ID = 3
EXACT_NAME = 2
SUBSTRING = 1
NO_MATCH = 0


def normalize_name(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _names(counterparty: Counterparty) -> Tuple[str, ...]:
    names = (normalize_name(counterparty.name), normalize_name(counterparty.company_name))
    return tuple(name for name in names if name)


class StrictMatcher:
    """id 或完全同名"""

    name = "strict"

    def name_score(self, record_name: str, counterparty: Counterparty) -> int:
        record_name = normalize_name(record_name)
        if record_name and record_name in _names(counterparty):
            return EXACT_NAME
        return NO_MATCH

    def text_mentions(self, text: str, counterparty: Counterparty) -> bool:
        return False

    def score(self, record_id: Optional[str], record_name: str, counterparty: Counterparty) -> int:
        if record_id and record_id == counterparty.id:
            return EXACT_ID
        return self.name_score(record_name, counterparty)


class FuzzyMatcher(StrictMatcher):
    """在严格匹配基础上增加名称双向包含"""

    name = "fuzzy"

    def name_score(self, record_name: str, counterparty: Counterparty) -> int:
        exact = super().name_score(record_name, counterparty)
        if exact:
            return exact
        record_name = normalize_name(record_name)
        if not record_name:
            return NO_MATCH
        for name in _names(counterparty):
            if record_name in name or name in record_name:
                return SUBSTRING
        return NO_MATCH

    def text_mentions(self, text: str, counterparty: Counterparty) -> bool:
        text = normalize_name(text)
        return bool(text) and any(name in text for name in _names(counterparty))


MATCHERS = {
    "strict": StrictMatcher,
    "fuzzy": FuzzyMatcher,
}


def get_matcher(strategy: str = DEFAULT_MATCH_STRATEGY) -> StrictMatcher:
    try:
        return MATCHERS[strategy]()
    except KeyError:
        raise EngineError(
            "UNKNOWN_MATCH_STRATEGY",
            f"未知匹配策略: {strategy}",
            {"supported": sorted(MATCHERS)},
        ) from None


def best_match(
    record_id: Optional[str],
    record_name: str,
    counterparties: Sequence[Counterparty],
    matcher: Optional[StrictMatcher] = None
) -> Tuple[Optional[Counterparty], int]:
    """
    为一条记录选择归属对手

    存储的 id 命中已知对手时直接返回，不再按名称重新归属。

    Returns:
        (对手或 None, 得分)
    """
    matcher = matcher or get_matcher()
    if record_id:
        for counterparty in counterparties:
            if counterparty.id == record_id:
                return counterparty, EXACT_ID

    best: Optional[Counterparty] = None
    best_score = NO_MATCH
    tied: List[str] = []
    for counterparty in sorted(counterparties, key=lambda c: c.id):
        score = matcher.name_score(record_name, counterparty)
        if score > best_score:
            best, best_score, tied = counterparty, score, [counterparty.id]
        elif score and score == best_score:
            tied.append(counterparty.id)

    if len(tied) > 1:
        logger.debug("Ambiguous counterparty match for %r: %s, picked %s",
                     record_name, tied, best.id if best else None)
    return best, best_score


def attribute(
    records: Iterable,
    counterparties: Sequence[Counterparty],
    id_attr: str,
    name_attr: str,
    matcher: Optional[StrictMatcher] = None
) -> Dict[str, List]:
    """
    批量归属

    Returns:
        {counterparty_id: [record, ...]}，未归属的记录在 "" 键下
    """
    matcher = matcher or get_matcher()
    result: Dict[str, List] = {c.id: [] for c in counterparties}
    result.setdefault("", [])
    for record in records:
        counterparty, _ = best_match(getattr(record, id_attr), getattr(record, name_attr),
                                     counterparties, matcher)
        result[counterparty.id if counterparty else ""].append(record)
    return result
