"""
行动模块

行动记录的规范化、打分、兜底生成与候选组装。
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from action_engine.actions.assembler import assemble
    from action_engine.actions.cta import CtaType
    from action_engine.actions.fallback import generate_fallback_actions
    from action_engine.actions.normalizer import normalize_record
    from action_engine.actions.scorer import score

__all__ = [
    "CtaType",
    "assemble",
    "generate_fallback_actions",
    "normalize_record",
    "score",
]
