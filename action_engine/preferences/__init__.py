"""
用户偏好模块

偏好状态的写回缓存（防抖 flush）与 Redis 持久化。
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from action_engine.preferences.keys import PreferenceKeys
    from action_engine.preferences.repository import PreferenceRepository
    from action_engine.preferences.store import PreferenceStore

__all__ = [
    "PreferenceKeys",
    "PreferenceRepository",
    "PreferenceStore",
]
