"""
搜索与过滤模块

自由文本模糊匹配 + 标签 / 紧急度 / 影响力 / 时间投入的结构化过滤。
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from action_engine.search.facets import facet_counts, popular_tags
    from action_engine.search.filtering import filter_actions

__all__ = [
    "facet_counts",
    "filter_actions",
    "popular_tags",
]
