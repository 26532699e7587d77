from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from loguru import logger

from action_engine.actions.fallback import generate_fallback_actions
from action_engine.actions.normalizer import normalize_records
from action_engine.actions.scorer import apply_scores
from action_engine.data.models import Action, IntentContext, PreferenceState, utcnow


def assemble(
    context: IntentContext,
    personalized_pool: Optional[Sequence[Any]],
    popular_pool: Optional[Sequence[Any]],
    preferences: PreferenceState,
    *,
    min_result_count: int = 3,
    max_result_count: int = 20,
    generated_at: Optional[datetime] = None,
) -> list[Action]:
    """
    候选组装：规范化 -> 按 id 去重（个性化池优先）-> 打分 -> 稳定排序 -> 不足时补兜底 -> 截断。

    结果永不为空；兜底行动追加在真实候选之后，不参与重排。
    """
    now = generated_at or utcnow()

    candidates = normalize_records(personalized_pool or [], context, source="personalized", generated_at=now)
    candidates += normalize_records(popular_pool or [], context, source="popular", generated_at=now)

    seen: set[str] = set()
    unique: list[Action] = []
    for action in candidates:
        if action.id in seen:
            continue
        seen.add(action.id)
        unique.append(action)

    apply_scores(unique, context, preferences)
    # sorted 是稳定排序，同分时保持池内原始顺序
    ranked = sorted(unique, key=lambda a: (-a.engagement_score, -a.relevance_score))

    # min_result_count 为 0 时，空结果同样补兜底
    if not ranked or len(ranked) < min_result_count:
        fallback = [a for a in generate_fallback_actions(context, generated_at=now) if a.id not in seen]
        apply_scores(fallback, context, preferences)
        logger.info(
            f"[Assembler] 候选不足，追加兜底行动: real={len(ranked)}, fallback={len(fallback)}, "
            f"intent={context.intent}, topic={context.topic}"
        )
        ranked.extend(fallback)

    if max_result_count > 0:
        ranked = ranked[:max_result_count]
    return ranked
