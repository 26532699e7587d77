"""
服务模块入口。

这里不做强导入，导入子模块时不连带加载目录客户端等依赖。
"""

from __future__ import annotations

from typing import Any

__all__ = ["ActionEngine", "ActionSession", "EngineConfig", "RecommendationCycle"]


_LAZY_IMPORTS = {
    "ActionEngine": (".engine_service", "ActionEngine"),
    "ActionSession": (".engine_service", "ActionSession"),
    "EngineConfig": (".engine_service", "EngineConfig"),
    "RecommendationCycle": (".engine_service", "RecommendationCycle"),
}


def __getattr__(name: str) -> Any:
    if name not in _LAZY_IMPORTS:
        raise AttributeError(name)
    module_path, attr = _LAZY_IMPORTS[name]
    from importlib import import_module

    module = import_module(module_path, __name__)
    return getattr(module, attr)
