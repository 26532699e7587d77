from __future__ import annotations

import random
from itertools import groupby
from typing import Optional

from action_engine.data.models import Action


def apply_variety(actions: list[Action], seed: Optional[int]) -> list[Action]:
    """
    可选的展示多样性：只在 engagement_score 相同的相邻分组内打乱顺序。

    seed 为 None 时原样返回；给定 seed 时结果可复现。排序之后调用，不影响分数。
    """
    if seed is None or len(actions) < 2:
        return list(actions)

    rng = random.Random(seed)
    shuffled: list[Action] = []
    # 兜底行动单独成组，始终留在真实候选之后
    for _, group in groupby(actions, key=lambda a: (a.source == "fallback", a.engagement_score)):
        bucket = list(group)
        rng.shuffle(bucket)
        shuffled.extend(bucket)
    return shuffled
