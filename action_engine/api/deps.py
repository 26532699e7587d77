# 依赖注入：进程内共享一个引擎实例
from __future__ import annotations

from typing import Optional

from loguru import logger

from action_engine.catalog.base import ICatalogClient
from action_engine.catalog.memory_client import InMemoryCatalogClient
from action_engine.catalog.rest_client import RestCatalogClient
from action_engine.core.config import settings
from action_engine.core.redis_client import redis_client
from action_engine.preferences.keys import PreferenceKeys
from action_engine.preferences.repository import PreferenceRepository
from action_engine.services.engine_service import ActionEngine, EngineConfig

_engine: Optional[ActionEngine] = None


def build_catalog_client() -> ICatalogClient:
    if settings.CATALOG_BASE_URL:
        return RestCatalogClient(
            settings.CATALOG_BASE_URL,
            api_key=settings.CATALOG_API_KEY,
            timeout_seconds=settings.CATALOG_TIMEOUT_SECONDS,
        )
    logger.warning("未配置 CATALOG_BASE_URL，使用内置样例目录")
    return InMemoryCatalogClient()


def build_preference_repository() -> Optional[PreferenceRepository]:
    if not redis_client.is_connected:
        logger.warning("Redis 未连接，偏好只保存在进程内存中")
        return None
    return PreferenceRepository(redis_client, keys=PreferenceKeys.with_prefix(settings.PREFERENCE_KEY_PREFIX))


def get_action_engine() -> ActionEngine:
    global _engine
    if _engine is None:
        _engine = ActionEngine(
            build_catalog_client(),
            build_preference_repository(),
            config=EngineConfig.from_settings(settings),
        )
    return _engine


async def close_action_engine() -> None:
    global _engine
    if _engine is not None:
        await _engine.aclose()
        _engine = None
