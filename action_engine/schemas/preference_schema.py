from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PreferenceSnapshotResponse(BaseModel):
    """用户偏好快照（导出）"""

    user_id: str
    preferred_intents: list[str] = Field(default_factory=list)
    preferred_topics: list[str] = Field(default_factory=list)
    preferred_locations: list[str] = Field(default_factory=list)
    total_actions_viewed: int = Field(default=0, ge=0)
    actions_completed: int = Field(default=0, ge=0)
    actions_saved: int = Field(default=0, ge=0)
    total_time_spent_seconds: float = Field(default=0.0, ge=0)
    last_engagement_at: Optional[datetime] = None
    action_ratings: dict[str, int] = Field(default_factory=dict)
