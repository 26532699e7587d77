"""
行动目录接口定义

引擎只依赖此接口；具体实现可以是内存目录或远程 REST 服务。
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class CatalogError(RuntimeError):
    """目录服务调用失败（网络错误、非 2xx 响应、响应格式不合法）"""


class ICatalogClient(ABC):
    """
    行动目录客户端接口

    返回的记录是原始字典，由 Normalizer 负责补齐与校正字段。
    """

    @abstractmethod
    async def get_personalized_actions(self, user_id: str, limit: int = 15) -> List[Dict[str, Any]]:
        """
        按用户兴趣检索个性化候选

        Args:
            user_id: 用户 ID
            limit: 返回数量上限

        Returns:
            原始行动记录列表
        """
        pass

    @abstractmethod
    async def get_popular_actions(self, limit: int = 10) -> List[Dict[str, Any]]:
        """按完成次数检索热门候选"""
        pass

    @abstractmethod
    async def start_action(self, user_id: str, action_id: str) -> None:
        pass

    @abstractmethod
    async def complete_action(
        self,
        user_id: str,
        action_id: str,
        impact_reported: Optional[str] = None,
        feedback: Optional[str] = None,
    ) -> None:
        pass

    async def aclose(self) -> None:
        """释放底层资源，默认无操作"""
        return None
