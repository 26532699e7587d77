from __future__ import annotations


def substring_distance(pattern: str, text: str, max_dist: int | None = None) -> int | None:
    """
    近似子串匹配：pattern 与 text 任意子串之间的最小编辑距离。

    说明：
    - 与普通 Levenshtein 的区别只在第一行全为 0（匹配可从 text 任意位置开始），
      结果取最后一行的最小值（匹配可在任意位置结束）。
    - 给定 max_dist 时做剪枝：某一行的最小值已超过 max_dist 则早停返回 None。
    """
    m = len(pattern)
    if m == 0:
        return 0
    if not text:
        return m if max_dist is None or m <= max_dist else None

    n = len(text)
    prev = [0] * (n + 1)
    for i in range(1, m + 1):
        cur = [i] + [0] * n
        min_in_row = i
        cp = pattern[i - 1]
        for j in range(1, n + 1):
            cost = 0 if cp == text[j - 1] else 1
            cur[j] = min(
                prev[j] + 1,        # 删除
                cur[j - 1] + 1,     # 插入
                prev[j - 1] + cost  # 替换
            )
            if cur[j] < min_in_row:
                min_in_row = cur[j]

        if max_dist is not None and min_in_row > max_dist:
            return None
        prev = cur

    dist = min(prev)
    if max_dist is not None and dist > max_dist:
        return None
    return dist


def partial_similarity(pattern: str, text: str, threshold: float = 0.0) -> float:
    """
    近似子串相似度，范围 [0, 1]；1 表示 pattern 原样出现在 text 中。

    两个参数都应先经过 normalize_keyword。低于 threshold 的结果统一返回 0.0。
    """
    if not pattern:
        return 1.0
    if not text:
        return 0.0
    if pattern in text:
        return 1.0

    m = len(pattern)
    max_dist = int((1.0 - threshold) * m + 1e-9) if threshold > 0 else None
    dist = substring_distance(pattern, text, max_dist)
    if dist is None:
        return 0.0
    similarity = 1.0 - dist / m
    return similarity if similarity >= threshold else 0.0
