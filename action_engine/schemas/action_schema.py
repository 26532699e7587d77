"""
行动推荐 API Schema

定义生成、过滤、反馈相关的请求与响应模型。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from action_engine.actions.cta import CtaType
from action_engine.data.models import Action, FilterState, IntentContext


class GenerateActionsRequest(BaseModel):
    user_id: str = Field(..., min_length=1, description="用户ID")
    intent: str = Field(..., min_length=1, description="意图（be heard / volunteer / donate ...）")
    topic: str = Field(default="", description="话题")
    location: str = Field(default="", description="地点")

    def to_context(self) -> IntentContext:
        return IntentContext(intent=self.intent.strip(), topic=self.topic.strip(), location=self.location.strip())


class ActionItem(BaseModel):
    id: str
    title: str
    description: str
    tags: list[str] = Field(default_factory=list)
    intent: str
    topic: str
    location: str
    cta: str = Field(..., description="按钮文案（由 cta_type 决定）")
    cta_type: CtaType
    impact: int = Field(..., ge=1, le=5)
    urgency: int = Field(..., ge=1, le=5)
    time_commitment: Optional[str] = None
    organization_name: Optional[str] = None
    category: Optional[str] = None
    link: Optional[str] = None
    relevance_score: float = Field(..., ge=0, le=1)
    engagement_score: float = Field(..., ge=0, le=100)
    generated_at: datetime
    completed_at: Optional[datetime] = None
    saved_at: Optional[datetime] = None
    source: str = Field(..., description="候选来源: personalized/popular/fallback")
    next_steps: list[str] = Field(default_factory=list)

    @classmethod
    def from_action(cls, action: Action) -> "ActionItem":
        return cls(**action.to_dict())


class GenerateActionsResponse(BaseModel):
    generation: int = Field(..., ge=1, description="请求代数")
    stale: bool = Field(default=False, description="是否已被更新的请求取代")
    count: int
    actions: list[ActionItem] = Field(default_factory=list)


class FilterRequest(BaseModel):
    search_query: str = Field(default="", description="自由文本（模糊匹配）")
    tags: list[str] = Field(default_factory=list, description="标签（AND）")
    urgency: list[int] = Field(default_factory=list, description="紧急度（OR）")
    impact: list[int] = Field(default_factory=list, description="影响力（OR）")
    time_commitment: list[str] = Field(default_factory=list, description="时间投入（OR，包含匹配）")

    def to_filter_state(self) -> FilterState:
        return FilterState(
            search_query=self.search_query,
            tags=set(self.tags),
            urgency=set(self.urgency),
            impact=set(self.impact),
            time_commitment=set(self.time_commitment),
        )


class ActionListResponse(BaseModel):
    count: int
    actions: list[ActionItem] = Field(default_factory=list)


class TagCount(BaseModel):
    tag: str
    count: int


class FacetsResponse(BaseModel):
    popular_tags: list[TagCount] = Field(default_factory=list)
    urgency: dict[str, int] = Field(default_factory=dict)
    impact: dict[str, int] = Field(default_factory=dict)
    time_commitment: dict[str, int] = Field(default_factory=dict)
    category: dict[str, int] = Field(default_factory=dict)


class CompleteActionRequest(BaseModel):
    impact_reported: Optional[str] = Field(default=None, description="用户自报影响")
    feedback: Optional[str] = None


class RateActionRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5, description="评分 1-5")
    feedback: Optional[str] = None


class TimeSpentRequest(BaseModel):
    seconds: float = Field(..., ge=0, allow_inf_nan=False, description="停留时长（秒）")


class FeedbackAcceptedResponse(BaseModel):
    accepted: bool = True
    detail: dict[str, Any] = Field(default_factory=dict)
