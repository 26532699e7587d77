"""
行动目录客户端

个性化池 / 热门池的检索，以及开始、完成行动的上报。
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from action_engine.catalog.base import CatalogError, ICatalogClient
    from action_engine.catalog.memory_client import InMemoryCatalogClient
    from action_engine.catalog.rest_client import RestCatalogClient

__all__ = [
    "CatalogError",
    "ICatalogClient",
    "InMemoryCatalogClient",
    "RestCatalogClient",
]
