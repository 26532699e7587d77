"""
行动推荐引擎

每个用户一个会话（偏好写回缓存 + 当前结果集 + 请求代数）。
对外方法全部吞掉异常并记录日志：生成永远返回非空结果，反馈永远不会打断调用方。
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional

from loguru import logger

from action_engine.actions.assembler import assemble
from action_engine.actions.fallback import generate_fallback_actions
from action_engine.actions.scorer import apply_scores
from action_engine.actions.variety import apply_variety
from action_engine.catalog.base import ICatalogClient
from action_engine.core.config import Settings
from action_engine.data.models import Action, FilterState, IntentContext, PreferenceState
from action_engine.preferences.repository import PreferenceRepository
from action_engine.preferences.store import PreferenceStore
from action_engine.search.facets import facet_counts, popular_tags
from action_engine.search.filtering import filter_actions


@dataclass(frozen=True)
class EngineConfig:
    personalized_pool_limit: int = 15
    popular_pool_limit: int = 10
    min_result_count: int = 3
    max_result_count: int = 20
    catalog_timeout_seconds: float = 5.0
    preference_list_cap: int = 10
    positive_rating_threshold: int = 4
    preference_flush_seconds: float = 5.0
    search_similarity_threshold: float = 0.7
    variety_seed: Optional[int] = None
    max_sessions: int = 1000

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineConfig":
        return cls(
            personalized_pool_limit=settings.PERSONALIZED_POOL_LIMIT,
            popular_pool_limit=settings.POPULAR_POOL_LIMIT,
            min_result_count=settings.MIN_RESULT_COUNT,
            max_result_count=settings.MAX_RESULT_COUNT,
            catalog_timeout_seconds=settings.CATALOG_TIMEOUT_SECONDS,
            preference_list_cap=settings.PREFERENCE_LIST_CAP,
            positive_rating_threshold=settings.POSITIVE_RATING_THRESHOLD,
            preference_flush_seconds=settings.PREFERENCE_FLUSH_SECONDS,
            search_similarity_threshold=settings.SEARCH_SIMILARITY_THRESHOLD,
            variety_seed=settings.VARIETY_SEED,
            max_sessions=settings.MAX_SESSIONS,
        )


@dataclass
class RecommendationCycle:
    generation: int
    actions: list[Action]
    stale: bool = False


@dataclass
class ActionSession:
    user_id: str
    store: PreferenceStore
    actions: list[Action] = field(default_factory=list)
    context: Optional[IntentContext] = None
    generation: int = 0


class ActionEngine:
    def __init__(
        self,
        catalog: ICatalogClient,
        repository: Optional[PreferenceRepository] = None,
        *,
        config: EngineConfig | None = None,
    ) -> None:
        self._catalog = catalog
        self._repository = repository
        self._cfg = config or EngineConfig()
        # 最近使用的会话在末尾，淘汰从头部开始
        self._sessions: OrderedDict[str, ActionSession] = OrderedDict()

    @property
    def config(self) -> EngineConfig:
        return self._cfg

    # ========== 会话 ==========

    async def _load_state(self, user_id: str) -> PreferenceState:
        if self._repository is None:
            return PreferenceState()
        try:
            return await self._repository.load(user_id)
        except Exception as exc:
            logger.warning(f"[ActionEngine] 加载偏好失败，使用空偏好: user_id={user_id}, err={exc}")
            return PreferenceState()

    async def get_session(self, user_id: str) -> ActionSession:
        session = self._sessions.get(user_id)
        if session is not None:
            self._sessions.move_to_end(user_id)
            return session

        state = await self._load_state(user_id)
        # 加载期间可能已有并发请求建好了会话
        session = self._sessions.get(user_id)
        if session is not None:
            self._sessions.move_to_end(user_id)
            return session

        store = PreferenceStore(
            user_id,
            state,
            self._repository,
            list_cap=self._cfg.preference_list_cap,
            positive_threshold=self._cfg.positive_rating_threshold,
            flush_delay_seconds=self._cfg.preference_flush_seconds,
        )
        session = ActionSession(user_id=user_id, store=store)
        self._sessions[user_id] = session
        await self._evict_sessions()
        return session

    async def _evict_sessions(self) -> None:
        """超出会话上限时淘汰最久未使用的会话；淘汰前先把偏好写回持久层"""
        limit = self._cfg.max_sessions
        if limit <= 0:
            return
        while len(self._sessions) > limit:
            user_id, session = self._sessions.popitem(last=False)
            try:
                await session.store.aclose()
            except Exception as exc:
                logger.error(f"[ActionEngine] 淘汰会话时写回偏好失败: user_id={user_id}, err={exc}")
            logger.info(f"[ActionEngine] 淘汰会话: user_id={user_id}, sessions={len(self._sessions)}")

    # ========== 生成 ==========

    async def _fetch_pool(self, name: str, call: Awaitable[Any]) -> list[Any]:
        try:
            records = await asyncio.wait_for(call, timeout=self._cfg.catalog_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"[ActionEngine] 候选池检索超时: pool={name}, timeout={self._cfg.catalog_timeout_seconds}s")
            return []
        except Exception as exc:
            logger.warning(f"[ActionEngine] 候选池检索失败: pool={name}, err={exc}")
            return []
        return list(records or [])

    def _fallback(self, context: IntentContext, preferences: PreferenceState) -> list[Action]:
        return apply_scores(generate_fallback_actions(context), context, preferences)

    async def generate_actions(self, user_id: str, context: IntentContext) -> RecommendationCycle:
        """
        生成一轮推荐。

        两个候选池并发检索，各自带超时；任何失败都降级为兜底行动。
        若期间同一用户发起了更新的请求，本轮结果标记为 stale，不写入会话也不计入浏览。
        """
        session = await self.get_session(user_id)
        session.generation += 1
        generation = session.generation
        preferences = session.store.snapshot()

        try:
            personalized, popular = await asyncio.gather(
                self._fetch_pool(
                    "personalized",
                    self._catalog.get_personalized_actions(user_id, self._cfg.personalized_pool_limit),
                ),
                self._fetch_pool("popular", self._catalog.get_popular_actions(self._cfg.popular_pool_limit)),
            )
            actions = assemble(
                context,
                personalized,
                popular,
                preferences,
                min_result_count=self._cfg.min_result_count,
                max_result_count=self._cfg.max_result_count,
            )
            actions = apply_variety(actions, self._cfg.variety_seed)
        except Exception as exc:
            logger.error(f"[ActionEngine] 组装候选失败，使用兜底行动: user_id={user_id}, err={exc}")
            actions = self._fallback(context, preferences)

        if generation != session.generation:
            logger.info(
                f"[ActionEngine] 丢弃过期结果: user_id={user_id}, generation={generation}, "
                f"current={session.generation}"
            )
            return RecommendationCycle(generation=generation, actions=actions, stale=True)

        session.actions = actions
        session.context = context
        self._safe(user_id, "record_view", lambda: session.store.record_view(actions))
        logger.info(
            f"[ActionEngine] 生成完成: user_id={user_id}, generation={generation}, "
            f"intent={context.intent}, topic={context.topic}, count={len(actions)}"
        )
        return RecommendationCycle(generation=generation, actions=actions)

    # ========== 过滤 / 展示 ==========

    def current_actions(self, user_id: str) -> list[Action]:
        session = self._sessions.get(user_id)
        return list(session.actions) if session else []

    def filter_actions(self, user_id: str, filter_state: FilterState) -> list[Action]:
        return filter_actions(
            self.current_actions(user_id),
            filter_state,
            threshold=self._cfg.search_similarity_threshold,
        )

    def personalized_recommendations(self, user_id: str, limit: int = 3) -> list[Action]:
        """当前结果集已按得分排序，直接取前 limit 条"""
        if limit <= 0:
            return []
        return self.current_actions(user_id)[:limit]

    def facets(self, user_id: str) -> dict[str, Any]:
        actions = self.current_actions(user_id)
        return {"popular_tags": popular_tags(actions), **facet_counts(actions)}

    def reset_session(self, user_id: str) -> None:
        """清空当前结果；代数 +1，使进行中的请求全部过期。偏好保留"""
        session = self._sessions.get(user_id)
        if session is None:
            return
        session.generation += 1
        session.actions = []
        session.context = None
        logger.info(f"[ActionEngine] 会话已重置: user_id={user_id}, generation={session.generation}")

    # ========== 反馈 ==========

    def _safe(self, user_id: str, name: str, fn) -> bool:
        try:
            fn()
            return True
        except Exception as exc:
            logger.error(f"[ActionEngine] 记录反馈失败: event={name}, user_id={user_id}, err={exc}")
            return False

    async def record_view(self, user_id: str, actions: list[Action]) -> bool:
        session = await self.get_session(user_id)
        return self._safe(user_id, "view", lambda: session.store.record_view(actions))

    async def record_completion(self, user_id: str, action_id: str) -> bool:
        session = await self.get_session(user_id)
        return self._safe(user_id, "completion", lambda: session.store.record_completion(action_id, session.actions))

    async def record_save(self, user_id: str, action_id: str) -> bool:
        session = await self.get_session(user_id)
        return self._safe(user_id, "save", lambda: session.store.record_save(action_id, session.actions))

    async def record_rating(
        self,
        user_id: str,
        action_id: str,
        rating: int,
        feedback: Optional[str] = None,
    ) -> bool:
        session = await self.get_session(user_id)
        return self._safe(
            user_id,
            "rating",
            lambda: session.store.record_rating(action_id, rating, feedback, session.actions),
        )

    async def record_time_spent(self, user_id: str, action_id: str, seconds: float) -> bool:
        session = await self.get_session(user_id)
        return self._safe(user_id, "time_spent", lambda: session.store.record_time_spent(action_id, seconds))

    async def start_action(self, user_id: str, action_id: str) -> bool:
        try:
            await self._catalog.start_action(user_id, action_id)
            return True
        except Exception as exc:
            logger.error(f"[ActionEngine] 上报开始行动失败: user_id={user_id}, action_id={action_id}, err={exc}")
            return False

    async def complete_action(
        self,
        user_id: str,
        action_id: str,
        impact_reported: Optional[str] = None,
        feedback: Optional[str] = None,
    ) -> bool:
        """上报目录服务（失败只记日志），并在本地记一次完成"""
        reported = True
        try:
            await self._catalog.complete_action(user_id, action_id, impact_reported, feedback)
        except Exception as exc:
            reported = False
            logger.error(f"[ActionEngine] 上报完成行动失败: user_id={user_id}, action_id={action_id}, err={exc}")
        await self.record_completion(user_id, action_id)
        return reported

    # ========== 导出 / 关闭 ==========

    async def preference_snapshot(self, user_id: str) -> PreferenceState:
        session = await self.get_session(user_id)
        return session.store.snapshot()

    async def export_preference_state(self, user_id: str) -> str:
        session = await self.get_session(user_id)
        return session.store.export()

    async def aclose(self) -> None:
        for session in list(self._sessions.values()):
            try:
                await session.store.aclose()
            except Exception as exc:
                logger.error(f"[ActionEngine] 关闭偏好缓存失败: user_id={session.user_id}, err={exc}")
        try:
            await self._catalog.aclose()
        except Exception as exc:
            logger.error(f"[ActionEngine] 关闭目录客户端失败: err={exc}")
