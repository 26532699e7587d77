from __future__ import annotations

import re
from typing import Iterable

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_keyword(keyword: str | None) -> str:
    """
    文本规范化（用于搜索词、标签、地点等大小写无关的比较）

    - 去除首尾空白、压缩连续空白为单空格
    - 大小写统一：使用 casefold()
    """
    if not keyword:
        return ""
    compact = _WHITESPACE_RE.sub(" ", keyword.strip())
    return compact.casefold()


def normalize_set(values: Iterable[str]) -> set[str]:
    return {v for v in (normalize_keyword(x) for x in values) if v}
