from __future__ import annotations

import asyncio
from typing import Any, Optional

import requests
from loguru import logger

from action_engine.catalog.base import CatalogError, ICatalogClient


class RestCatalogClient(ICatalogClient):
    """
    远程目录服务客户端

    requests 是阻塞调用，统一通过 asyncio.to_thread 放到线程池执行，不阻塞事件循环。
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        timeout_seconds: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise ValueError("CATALOG_BASE_URL 不能为空")
        self._base_url = base_url.rstrip("/")
        self._timeout = float(timeout_seconds)
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if api_key:
            self._session.headers["Authorization"] = f"Bearer {api_key}"

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}{path}"
        try:
            resp = self._session.request(method, url, timeout=self._timeout, **kwargs)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning(f"[RestCatalog] 请求失败: {method} {url}, err={exc}")
            raise CatalogError(f"{method} {path} 失败: {exc}") from exc

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise CatalogError(f"{method} {path} 返回了非 JSON 响应") from exc

    @staticmethod
    def _records(payload: Any) -> list[dict[str, Any]]:
        # 兼容直接返回数组或 {"items": [...]} 两种格式
        if isinstance(payload, dict):
            payload = payload.get("items", payload.get("actions"))
        if not isinstance(payload, list):
            raise CatalogError("目录响应格式不合法：期望行动数组")
        return payload

    async def get_personalized_actions(self, user_id: str, limit: int = 15) -> list[dict[str, Any]]:
        payload = await asyncio.to_thread(
            self._request, "GET", "/actions/personalized", params={"user_id": user_id, "limit": limit}
        )
        return self._records(payload)

    async def get_popular_actions(self, limit: int = 10) -> list[dict[str, Any]]:
        payload = await asyncio.to_thread(self._request, "GET", "/actions/popular", params={"limit": limit})
        return self._records(payload)

    async def start_action(self, user_id: str, action_id: str) -> None:
        await asyncio.to_thread(
            self._request,
            "POST",
            "/user-actions/start",
            json={"user_id": user_id, "action_id": action_id, "status": "started"},
        )

    async def complete_action(
        self,
        user_id: str,
        action_id: str,
        impact_reported: Optional[str] = None,
        feedback: Optional[str] = None,
    ) -> None:
        body: dict[str, Any] = {"user_id": user_id, "action_id": action_id, "status": "completed"}
        if impact_reported is not None:
            body["impact_reported"] = impact_reported
        if feedback is not None:
            body["feedback"] = feedback
        await asyncio.to_thread(self._request, "POST", "/user-actions/complete", json=body)

    async def aclose(self) -> None:
        self._session.close()
