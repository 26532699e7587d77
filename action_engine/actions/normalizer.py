"""
行动记录规范化

把目录服务返回的原始记录映射为引擎内部的 Action，缺失字段按 ctaType 默认表补齐。
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Iterable, Optional

from loguru import logger

from action_engine.actions.cta import (
    cta_type_for_intent,
    default_time_commitment,
    parse_cta_type,
)
from action_engine.data.models import Action, IntentContext, utcnow

# 目录中的 impact_level 文本到 1-5 分值
IMPACT_LEVELS: dict[str, int] = {"low": 2, "medium": 3, "high": 5}

DEFAULT_IMPACT = 3
DEFAULT_URGENCY = 3
UNTITLED = "Untitled action"


def clamp_level(value: Any, default: int) -> int:
    """转为 [1, 5] 内的整数，无法解析时返回 default"""
    try:
        level = int(round(float(value)))
    except (TypeError, ValueError):
        return default
    return max(1, min(5, level))


def _text(record: Mapping[str, Any], *names: str) -> Optional[str]:
    for name in names:
        value = record.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _derive_id(title: str, description: str) -> str:
    digest = hashlib.sha1(f"{title}\n{description}".encode("utf-8")).hexdigest()
    return f"catalog-{digest[:12]}"


def _tags(raw: Any) -> list[str]:
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, (list, tuple)):
        return []
    tags: list[str] = []
    for tag in raw:
        if isinstance(tag, str) and tag.strip() and tag.strip() not in tags:
            tags.append(tag.strip())
    return tags


def _impact(record: Mapping[str, Any]) -> int:
    if record.get("impact") is not None:
        return clamp_level(record.get("impact"), DEFAULT_IMPACT)
    level = record.get("impact_level")
    if isinstance(level, str):
        return IMPACT_LEVELS.get(level.strip().casefold(), DEFAULT_IMPACT)
    return DEFAULT_IMPACT


def normalize_record(
    record: Mapping[str, Any],
    context: IntentContext,
    *,
    source: str = "personalized",
    generated_at: Optional[datetime] = None,
) -> Action:
    """
    单条记录规范化，对任何 Mapping 都不会失败。

    - id 缺失时由标题+描述派生稳定 ID
    - ctaType 未知时回退 learn_more；缺失时按意图推断
    - 时间投入缺失时取 ctaType 默认值
    """
    title = _text(record, "title") or UNTITLED
    description = _text(record, "description") or ""

    raw_id = record.get("id")
    action_id = str(raw_id).strip() if raw_id is not None and str(raw_id).strip() else ""
    if not action_id:
        action_id = _derive_id(title, description)

    raw_cta = record.get("cta_type", record.get("ctaType"))
    cta_type = parse_cta_type(raw_cta) if raw_cta is not None else cta_type_for_intent(context.intent)

    return Action(
        id=action_id,
        title=title,
        description=description,
        tags=_tags(record.get("tags")),
        intent=context.intent,
        topic=context.topic,
        location=_text(record, "location") or context.location,
        cta_type=cta_type,
        impact=_impact(record),
        urgency=clamp_level(record.get("urgency"), DEFAULT_URGENCY),
        time_commitment=(
            _text(record, "time_commitment", "timeCommitment")
            or default_time_commitment(cta_type)
        ),
        organization_name=_text(record, "organization_name", "organizationName", "organization"),
        category=_text(record, "category"),
        link=_text(record, "link"),
        relevance_score=0.5,
        engagement_score=0.0,
        generated_at=generated_at or utcnow(),
        source=source,
    )


def normalize_records(
    records: Iterable[Any],
    context: IntentContext,
    *,
    source: str = "personalized",
    generated_at: Optional[datetime] = None,
) -> list[Action]:
    """批量规范化；非 Mapping 的脏数据跳过，不影响整批"""
    actions: list[Action] = []
    for record in records or []:
        if not isinstance(record, Mapping):
            logger.warning(f"[Normalizer] 跳过无法解析的记录: source={source}, type={type(record).__name__}")
            continue
        actions.append(normalize_record(record, context, source=source, generated_at=generated_at))
    return actions
