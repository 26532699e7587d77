"""
偏好状态写回缓存

所有变更都是可交换的同步操作（计数累加、有上限的头插去重），
变更后标记为 dirty，并在事件循环中延迟 flush 到持久层；flush 失败保留本地状态并重新调度。
"""

from __future__ import annotations

import asyncio
import json
import math
from datetime import datetime
from typing import Iterable, Optional

from loguru import logger

from action_engine.actions.cta import normalize_intent
from action_engine.data.models import Action, PreferenceState, utcnow
from action_engine.preferences.repository import PreferenceRepository
from action_engine.search.normalization import normalize_keyword

MIN_RATING = 1
MAX_RATING = 5


def prepend_capped(values: list[str], value: str, cap: int) -> None:
    """最近优先：已存在的（大小写无关）先移除再头插，超出上限淘汰最旧的"""
    if not value or not value.strip():
        return
    value = value.strip()
    key = normalize_keyword(value)
    values[:] = [v for v in values if normalize_keyword(v) != key]
    values.insert(0, value)
    del values[cap:]


class PreferenceStore:
    def __init__(
        self,
        user_id: str,
        state: Optional[PreferenceState] = None,
        repository: Optional[PreferenceRepository] = None,
        *,
        list_cap: int = 10,
        positive_threshold: int = 4,
        flush_delay_seconds: float = 5.0,
    ) -> None:
        self.user_id = user_id
        self._state = state or PreferenceState()
        self._repository = repository
        self._list_cap = max(1, int(list_cap))
        self._positive_threshold = int(positive_threshold)
        self._flush_delay = max(0.0, float(flush_delay_seconds))
        self._dirty = False
        self._flush_task: Optional[asyncio.Task] = None

    @property
    def dirty(self) -> bool:
        return self._dirty

    # ========== 变更 ==========

    def record_view(self, actions: Iterable[Action]) -> None:
        batch = list(actions)
        self._state.total_actions_viewed += len(batch)
        for action in batch:
            self._fold(action)
        self._touch()

    def record_completion(self, action_id: str, held: Iterable[Action] = ()) -> None:
        self._state.actions_completed += 1
        now = utcnow()
        for action in held:
            if action.id == action_id and action.completed_at is None:
                action.completed_at = now
        self._touch(now)

    def record_save(self, action_id: str, held: Iterable[Action] = ()) -> None:
        self._state.actions_saved += 1
        now = utcnow()
        for action in held:
            if action.id == action_id and action.saved_at is None:
                action.saved_at = now
        self._touch(now)

    def record_rating(
        self,
        action_id: str,
        rating: int,
        feedback: Optional[str] = None,
        held: Iterable[Action] = (),
    ) -> None:
        """
        记录评分；只有达到正向阈值的评分会把行动的意图/话题/地点并入偏好。

        低分不会从偏好列表中移除任何条目。
        """
        if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"评分必须是 {MIN_RATING}-{MAX_RATING} 的整数: {rating!r}")

        self._state.action_ratings[action_id] = rating
        if rating >= self._positive_threshold:
            for action in held:
                if action.id == action_id:
                    self._fold(action)
                    break
        if feedback:
            logger.debug(f"[PreferenceStore] 评分反馈: user_id={self.user_id}, action_id={action_id}, feedback={feedback}")
        self._touch()

    def record_time_spent(self, action_id: str, seconds: float) -> None:
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
            raise ValueError(f"停留时长必须是数字: {seconds!r}")
        if not math.isfinite(seconds) or seconds < 0:
            raise ValueError(f"停留时长必须是非负有限数: {seconds}")
        self._state.total_time_spent_seconds += float(seconds)
        self._touch()

    def _fold(self, action: Action) -> None:
        prepend_capped(self._state.preferred_intents, normalize_intent(action.intent), self._list_cap)
        prepend_capped(self._state.preferred_topics, action.topic, self._list_cap)
        prepend_capped(self._state.preferred_locations, action.location, self._list_cap)

    def _touch(self, when: Optional[datetime] = None) -> None:
        self._state.last_engagement_at = when or utcnow()
        self._dirty = True
        self._schedule_flush()

    # ========== 读取 ==========

    def snapshot(self) -> PreferenceState:
        return self._state.copy()

    def export(self) -> str:
        return json.dumps(self._state.to_dict(), ensure_ascii=False)

    # ========== 持久化 ==========

    def _schedule_flush(self) -> None:
        if self._repository is None:
            return
        if self._flush_task is not None and not self._flush_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # 没有运行中的事件循环（同步调用场景），等待显式 flush()
            return
        self._flush_task = loop.create_task(self._delayed_flush())

    async def _delayed_flush(self) -> None:
        await asyncio.sleep(self._flush_delay)
        # 先释放句柄，flush 期间的新变更可以调度下一轮
        self._flush_task = None
        await self.flush()

    async def flush(self, *, reschedule: bool = True) -> bool:
        """把当前完整快照写入持久层；失败时保留 dirty 并按需重新调度"""
        if self._repository is None or not self._dirty:
            return True
        self._dirty = False
        snapshot = self._state.copy()
        try:
            await self._repository.save(self.user_id, snapshot)
        except asyncio.CancelledError:
            self._dirty = True
            raise
        except Exception as exc:
            self._dirty = True
            logger.error(f"[PreferenceStore] 偏好写回失败，稍后重试: user_id={self.user_id}, err={exc}")
            if reschedule:
                self._schedule_flush()
            return False
        logger.debug(f"[PreferenceStore] 偏好已写回: user_id={self.user_id}")
        return True

    async def aclose(self) -> bool:
        task, self._flush_task = self._flush_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        return await self.flush(reschedule=False)
