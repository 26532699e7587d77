from __future__ import annotations

from typing import Iterable

from action_engine.data.models import Action, FilterState
from action_engine.search.fuzzy import partial_similarity
from action_engine.search.normalization import normalize_keyword, normalize_set

DEFAULT_SIMILARITY_THRESHOLD = 0.7


def _search_fields(action: Action) -> list[str]:
    fields = [action.title, action.description, action.organization_name or "", action.category or ""]
    fields.extend(action.tags)
    return [normalize_keyword(f) for f in fields if f]


def matches_query(action: Action, query: str, *, threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> bool:
    """query 需已规范化；任一字段的近似子串相似度达到阈值即命中"""
    if not query:
        return True
    for text in _search_fields(action):
        if partial_similarity(query, text, threshold) >= threshold:
            return True
    return False


def matches_tags(action: Action, tags: set[str]) -> bool:
    # AND：选中的每个标签都必须出现
    if not tags:
        return True
    return tags <= normalize_set(action.tags)


def matches_time_commitment(action: Action, selected: set[str]) -> bool:
    # OR：包含任一选中值即可；没有时间投入信息的行动被排除
    if not selected:
        return True
    own = normalize_keyword(action.time_commitment)
    if not own:
        return False
    return any(value in own for value in selected)


def filter_actions(
    actions: Iterable[Action],
    filter_state: FilterState,
    *,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> list[Action]:
    """
    多条件过滤，保持输入顺序，纯函数。

    顺序：搜索词 -> 标签(AND) -> 紧急度(OR) -> 影响力(OR) -> 时间投入(OR)。
    空的 FilterState 原样返回输入。
    """
    result = list(actions)
    if filter_state.is_empty():
        return result

    query = normalize_keyword(filter_state.search_query)
    tags = normalize_set(filter_state.tags)
    times = normalize_set(filter_state.time_commitment)

    if query:
        result = [a for a in result if matches_query(a, query, threshold=threshold)]
    if tags:
        result = [a for a in result if matches_tags(a, tags)]
    if filter_state.urgency:
        result = [a for a in result if a.urgency in filter_state.urgency]
    if filter_state.impact:
        result = [a for a in result if a.impact in filter_state.impact]
    if times:
        result = [a for a in result if matches_time_commitment(a, times)]
    return result
