from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from action_engine.actions.cta import CtaType, cta_label


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class IntentContext:
    intent: str
    topic: str
    location: str


@dataclass
class Action:
    id: str
    title: str
    description: str
    tags: List[str]
    intent: str
    topic: str
    location: str
    cta_type: CtaType = CtaType.LEARN_MORE
    impact: int = 3  # 1-5
    urgency: int = 3  # 1-5
    time_commitment: Optional[str] = None
    organization_name: Optional[str] = None
    category: Optional[str] = None
    link: Optional[str] = None
    relevance_score: float = 0.5  # 0-1，计算得出，不持久化
    engagement_score: float = 0.0  # 0-100，仅用于排序
    generated_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    saved_at: Optional[datetime] = None
    source: str = "personalized"  # personalized, popular, fallback
    next_steps: List[str] = field(default_factory=list)

    @property
    def cta(self) -> str:
        return cta_label(self.cta_type)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "intent": self.intent,
            "topic": self.topic,
            "location": self.location,
            "cta": self.cta,
            "cta_type": self.cta_type.value,
            "impact": self.impact,
            "urgency": self.urgency,
            "time_commitment": self.time_commitment,
            "organization_name": self.organization_name,
            "category": self.category,
            "link": self.link,
            "relevance_score": self.relevance_score,
            "engagement_score": self.engagement_score,
            "generated_at": self.generated_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "saved_at": self.saved_at.isoformat() if self.saved_at else None,
            "source": self.source,
            "next_steps": list(self.next_steps),
        }


@dataclass
class FilterState:
    search_query: str = ""
    tags: Set[str] = field(default_factory=set)
    urgency: Set[int] = field(default_factory=set)
    impact: Set[int] = field(default_factory=set)
    time_commitment: Set[str] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not (
            self.search_query.strip()
            or self.tags
            or self.urgency
            or self.impact
            or self.time_commitment
        )


PREFERENCE_SNAPSHOT_FIELDS = (
    "preferred_intents",
    "preferred_topics",
    "preferred_locations",
    "total_actions_viewed",
    "actions_completed",
    "actions_saved",
    "total_time_spent_seconds",
    "last_engagement_at",
)


def validate_preference_snapshot(data: Any) -> None:
    """
    结构校验：只检查顶层必需字段是否存在、类型是否大致正确。
    """
    if not isinstance(data, dict):
        raise ValueError("偏好快照必须是 JSON 对象")
    missing = [name for name in PREFERENCE_SNAPSHOT_FIELDS if name not in data]
    if missing:
        raise ValueError(f"偏好快照缺少字段: {', '.join(missing)}")
    for name in ("preferred_intents", "preferred_topics", "preferred_locations"):
        if not isinstance(data[name], list):
            raise ValueError(f"字段 {name} 必须是列表")
    for name in ("total_actions_viewed", "actions_completed", "actions_saved", "total_time_spent_seconds"):
        if not isinstance(data[name], (int, float)) or isinstance(data[name], bool):
            raise ValueError(f"字段 {name} 必须是数字")
    ratings = data.get("action_ratings")
    if ratings is not None and not isinstance(ratings, dict):
        raise ValueError("字段 action_ratings 必须是对象")


@dataclass
class PreferenceState:
    preferred_intents: List[str] = field(default_factory=list)
    preferred_topics: List[str] = field(default_factory=list)
    preferred_locations: List[str] = field(default_factory=list)
    total_actions_viewed: int = 0
    actions_completed: int = 0
    actions_saved: int = 0
    total_time_spent_seconds: float = 0.0
    last_engagement_at: Optional[datetime] = None
    action_ratings: Dict[str, int] = field(default_factory=dict)

    def copy(self) -> "PreferenceState":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "preferred_intents": list(self.preferred_intents),
            "preferred_topics": list(self.preferred_topics),
            "preferred_locations": list(self.preferred_locations),
            "total_actions_viewed": self.total_actions_viewed,
            "actions_completed": self.actions_completed,
            "actions_saved": self.actions_saved,
            "total_time_spent_seconds": self.total_time_spent_seconds,
            "last_engagement_at": self.last_engagement_at.isoformat() if self.last_engagement_at else None,
            "action_ratings": dict(self.action_ratings),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PreferenceState":
        validate_preference_snapshot(data)
        last = data.get("last_engagement_at")
        return cls(
            preferred_intents=[str(x) for x in data["preferred_intents"] if x],
            preferred_topics=[str(x) for x in data["preferred_topics"] if x],
            preferred_locations=[str(x) for x in data["preferred_locations"] if x],
            total_actions_viewed=int(data["total_actions_viewed"]),
            actions_completed=int(data["actions_completed"]),
            actions_saved=int(data["actions_saved"]),
            total_time_spent_seconds=float(data["total_time_spent_seconds"]),
            last_engagement_at=datetime.fromisoformat(last) if last else None,
            action_ratings={str(k): int(v) for k, v in (data.get("action_ratings") or {}).items()},
        )
