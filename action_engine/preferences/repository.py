from __future__ import annotations

import json
from typing import Any, Protocol

from loguru import logger

from action_engine.data.models import PreferenceState
from action_engine.preferences.keys import PreferenceKeys


class _RedisLike(Protocol):
    @property
    def client(self) -> Any: ...


class PreferenceRepository:
    """偏好快照持久化：每个用户一个 JSON 字符串"""

    def __init__(self, redis_client: _RedisLike, *, keys: PreferenceKeys | None = None):
        self._redis_client = redis_client
        self._keys = keys or PreferenceKeys()

    @property
    def keys(self) -> PreferenceKeys:
        return self._keys

    async def load(self, user_id: str) -> PreferenceState:
        """
        读取偏好快照；不存在或结构不合法时返回全新状态（不抛异常）。

        Redis 本身不可用时异常向上抛出，由调用方决定如何降级。
        """
        raw = await self._redis_client.client.get(self._keys.state(user_id))
        if not raw:
            return PreferenceState()
        try:
            return PreferenceState.from_dict(json.loads(raw))
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning(f"[PreferenceRepository] 偏好快照不合法，已重置: user_id={user_id}, err={exc}")
            return PreferenceState()

    async def save(self, user_id: str, state: PreferenceState) -> None:
        payload = json.dumps(state.to_dict(), ensure_ascii=False)
        await self._redis_client.client.set(self._keys.state(user_id), payload)
