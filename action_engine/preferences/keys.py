from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PreferenceKeys:
    """
    偏好模块 Redis Key 集合（可选前缀用于环境隔离）。
    """

    state_prefix: str = "preferences:"

    @classmethod
    def with_prefix(cls, prefix: str) -> "PreferenceKeys":
        p = prefix or ""
        return cls(state_prefix=f"{p}preferences:")

    def state(self, user_id: str) -> str:
        return f"{self.state_prefix}{user_id}"
