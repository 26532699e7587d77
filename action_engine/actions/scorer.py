"""
行动打分

纯函数：相同输入（行动、请求上下文、偏好快照）必然得到相同分数，内部不引入任何随机性。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from action_engine.actions.cta import normalize_intent
from action_engine.data.models import Action, IntentContext, PreferenceState
from action_engine.search.normalization import normalize_keyword, normalize_set

BASE_RELEVANCE = 0.5
TOPIC_BOOST = 0.3
LOCATION_BOOST = 0.2

IMPACT_WEIGHT = 20
URGENCY_WEIGHT = 5
PREFERRED_INTENT_BONUS = 15
PREFERRED_TOPIC_BONUS = 15
PREFERRED_LOCATION_BONUS = 10
MAX_ENGAGEMENT = 100.0

# 与地点无关的标记：任一方命中即视为地点匹配
LOCATION_AGNOSTIC = frozenset({"remote", "online", "national", "nationwide", "global", "anywhere"})


@dataclass(frozen=True)
class ActionScore:
    relevance_score: float
    engagement_score: float


def topic_matches(action: Action, topic: str) -> bool:
    needle = normalize_keyword(topic)
    if not needle:
        return False
    for tag in action.tags:
        if needle in normalize_keyword(tag):
            return True
    return needle in normalize_keyword(action.title) or needle in normalize_keyword(action.description)


def location_matches(action: Action, location: str) -> bool:
    requested = normalize_keyword(location)
    own = normalize_keyword(action.location)
    if requested in LOCATION_AGNOSTIC or own in LOCATION_AGNOSTIC:
        return True
    return bool(requested) and requested == own


def relevance_score(action: Action, context: IntentContext) -> float:
    relevance = BASE_RELEVANCE
    if topic_matches(action, context.topic):
        relevance += TOPIC_BOOST
    if location_matches(action, context.location):
        relevance += LOCATION_BOOST
    return min(1.0, round(relevance, 6))


def engagement_score(action: Action, preferences: PreferenceState) -> float:
    score = float(action.impact * IMPACT_WEIGHT)
    if normalize_intent(action.intent) in {normalize_intent(i) for i in preferences.preferred_intents}:
        score += PREFERRED_INTENT_BONUS
    if normalize_keyword(action.topic) in normalize_set(preferences.preferred_topics):
        score += PREFERRED_TOPIC_BONUS
    if normalize_keyword(action.location) in normalize_set(preferences.preferred_locations):
        score += PREFERRED_LOCATION_BONUS
    score += action.urgency * URGENCY_WEIGHT
    return min(MAX_ENGAGEMENT, score)


def score(action: Action, context: IntentContext, preferences: PreferenceState) -> ActionScore:
    return ActionScore(
        relevance_score=relevance_score(action, context),
        engagement_score=engagement_score(action, preferences),
    )


def apply_scores(
    actions: Iterable[Action],
    context: IntentContext,
    preferences: PreferenceState,
) -> list[Action]:
    """把分数写回行动对象并返回同一批对象"""
    scored: list[Action] = []
    for action in actions:
        result = score(action, context, preferences)
        action.relevance_score = result.relevance_score
        action.engagement_score = result.engagement_score
        scored.append(action)
    return scored
