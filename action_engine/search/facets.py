from __future__ import annotations

from collections import Counter
from typing import Any, Iterable

from action_engine.data.models import Action


def popular_tags(actions: Iterable[Action], limit: int = 20) -> list[dict[str, Any]]:
    """标签出现次数排行，次数相同按首次出现顺序"""
    if limit <= 0:
        return []
    counts: Counter[str] = Counter()
    first_seen: dict[str, int] = {}
    for action in actions:
        for tag in action.tags:
            if not tag:
                continue
            counts[tag] += 1
            first_seen.setdefault(tag, len(first_seen))
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], first_seen[kv[0]]))
    return [{"tag": tag, "count": count} for tag, count in ranked[:limit]]


def facet_counts(actions: Iterable[Action]) -> dict[str, dict[str, int]]:
    urgency: Counter[str] = Counter()
    impact: Counter[str] = Counter()
    time_commitment: Counter[str] = Counter()
    category: Counter[str] = Counter()
    for action in actions:
        urgency[str(action.urgency)] += 1
        impact[str(action.impact)] += 1
        if action.time_commitment:
            time_commitment[action.time_commitment] += 1
        if action.category:
            category[action.category] += 1
    return {
        "urgency": dict(sorted(urgency.items())),
        "impact": dict(sorted(impact.items())),
        "time_commitment": dict(time_commitment.most_common()),
        "category": dict(category.most_common()),
    }
