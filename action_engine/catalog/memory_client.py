from __future__ import annotations

import copy
from typing import Any, Iterable, Optional

from loguru import logger

from action_engine.catalog.base import CatalogError, ICatalogClient
from action_engine.search.normalization import normalize_set

# 未配置远程目录时使用的内置样例数据
SEED_ACTIONS: list[dict[str, Any]] = [
    {
        "id": "1",
        "title": "Clean Industrial Heat Tax Credit",
        "description": (
            "Smart policies that drive investments into industrial innovation to clean up the industrial "
            "sector. Providing a clean heat production tax credit to incentivize manufacturers to switch "
            "to clean energy sources."
        ),
        "tags": ["climate", "industrial", "policy", "tax-credit"],
        "cta_type": "contact_rep",
        "impact_level": "high",
        "urgency": 4,
        "organization": "Climate Science Alliance",
        "category": "policy",
        "link": "https://example.org/clean-heat",
        "location": "US",
        "completion_count": 234,
    },
    {
        "id": "2",
        "title": "NY Climate Change Superfund Act",
        "description": (
            "New York's Climate Change Superfund Act establishes a cost recovery program requiring "
            "companies that have emitted significant greenhouse gases to bear costs of infrastructure "
            "adaptation."
        ),
        "tags": ["ny", "state-gov", "policy", "climate", "superfund"],
        "cta_type": "petition",
        "impact_level": "high",
        "urgency": 5,
        "organization": "NY Climate Action",
        "category": "policy",
        "link": "https://example.org/ny-climate",
        "location": "New York",
        "completion_count": 156,
    },
    {
        "id": "3",
        "title": "Community Solar Gardens Initiative",
        "description": (
            "Local community organizing to establish shared solar energy systems that allow residents "
            "to access clean energy even if they can't install panels on their own property."
        ),
        "tags": ["solar", "community", "renewable-energy", "local"],
        "cta_type": "organize",
        "impact_level": "medium",
        "urgency": 3,
        "organization": "Local Solar Coalition",
        "category": "action",
        "link": "https://example.org/community-solar",
        "location": "Local",
        "completion_count": 89,
    },
    {
        "id": "4",
        "title": "Green Jobs Training Program",
        "description": (
            "Workforce development program that provides training and certification in renewable "
            "energy installation, energy efficiency, and sustainable agriculture."
        ),
        "tags": ["jobs", "training", "green-economy", "workforce"],
        "cta_type": "volunteer",
        "impact_level": "medium",
        "urgency": 2,
        "organization": "Green Jobs Alliance",
        "category": "organization",
        "link": "https://example.org/green-jobs",
        "location": "National",
        "completion_count": 123,
    },
]


class InMemoryCatalogClient(ICatalogClient):
    """
    进程内目录：个性化 = 标签与用户兴趣有交集，按完成次数降序；热门 = 完成次数降序。
    """

    def __init__(
        self,
        records: Optional[Iterable[dict[str, Any]]] = None,
        *,
        user_interests: Optional[dict[str, list[str]]] = None,
    ) -> None:
        self._records: list[dict[str, Any]] = [dict(r) for r in (SEED_ACTIONS if records is None else records)]
        self._interests: dict[str, list[str]] = dict(user_interests or {})
        self.started: list[tuple[str, str]] = []
        self.completed: list[tuple[str, str]] = []

    def set_interests(self, user_id: str, interests: list[str]) -> None:
        self._interests[user_id] = list(interests)

    def _by_popularity(self, records: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
        return sorted(records, key=lambda r: -int(r.get("completion_count") or 0))

    def _find(self, action_id: str) -> dict[str, Any]:
        for record in self._records:
            if str(record.get("id")) == action_id:
                return record
        raise CatalogError(f"行动不存在: {action_id}")

    async def get_personalized_actions(self, user_id: str, limit: int = 15) -> list[dict[str, Any]]:
        interests = normalize_set(self._interests.get(user_id) or [])
        if not interests or limit <= 0:
            return []
        matched = [r for r in self._records if interests & normalize_set(r.get("tags") or [])]
        return copy.deepcopy(self._by_popularity(matched)[:limit])

    async def get_popular_actions(self, limit: int = 10) -> list[dict[str, Any]]:
        if limit <= 0:
            return []
        return copy.deepcopy(self._by_popularity(self._records)[:limit])

    async def start_action(self, user_id: str, action_id: str) -> None:
        self._find(action_id)
        self.started.append((user_id, action_id))
        logger.info(f"[InMemoryCatalog] 开始行动: user_id={user_id}, action_id={action_id}")

    async def complete_action(
        self,
        user_id: str,
        action_id: str,
        impact_reported: Optional[str] = None,
        feedback: Optional[str] = None,
    ) -> None:
        record = self._find(action_id)
        record["completion_count"] = int(record.get("completion_count") or 0) + 1
        self.completed.append((user_id, action_id))
        logger.info(f"[InMemoryCatalog] 完成行动: user_id={user_id}, action_id={action_id}")
