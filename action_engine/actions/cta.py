from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CtaType(str, Enum):
    CONTACT_REP = "contact_rep"
    VOLUNTEER = "volunteer"
    DONATE = "donate"
    PETITION = "petition"
    LEARN_MORE = "learn_more"
    ORGANIZE = "organize"
    GET_HELP = "get_help"


@dataclass(frozen=True)
class CtaProfile:
    label: str
    default_time_commitment: str


# 唯一的 ctaType 映射表：新增类型只需改这里
CTA_PROFILES: dict[CtaType, CtaProfile] = {
    CtaType.CONTACT_REP: CtaProfile("Contact Representative", "5-10 minutes"),
    CtaType.VOLUNTEER: CtaProfile("Volunteer Now", "2-4 hours"),
    CtaType.DONATE: CtaProfile("Donate Now", "2 minutes"),
    CtaType.PETITION: CtaProfile("Sign Petition", "1 minute"),
    CtaType.LEARN_MORE: CtaProfile("Learn More", "10-20 minutes"),
    CtaType.ORGANIZE: CtaProfile("Start Organizing", "Ongoing"),
    CtaType.GET_HELP: CtaProfile("Get Support", "As needed"),
}

_missing = set(CtaType) - set(CTA_PROFILES)
if _missing:
    raise RuntimeError(f"CTA_PROFILES 缺少类型: {sorted(m.value for m in _missing)}")

INTENT_CTA_TYPES: dict[str, CtaType] = {
    "be heard": CtaType.CONTACT_REP,
    "volunteer": CtaType.VOLUNTEER,
    "get help": CtaType.GET_HELP,
    "donate": CtaType.DONATE,
    "organize": CtaType.ORGANIZE,
    "sign petition": CtaType.PETITION,
}


def normalize_intent(intent: str) -> str:
    """`be_heard` / `Be Heard` 统一为 `be heard`"""
    if not intent:
        return ""
    return " ".join(intent.replace("_", " ").split()).casefold()


def parse_cta_type(value: object) -> CtaType:
    """未知取值一律回退为 learn_more，不抛异常"""
    if isinstance(value, CtaType):
        return value
    if isinstance(value, str):
        try:
            return CtaType(value.strip().casefold())
        except ValueError:
            pass
    return CtaType.LEARN_MORE


def cta_type_for_intent(intent: str) -> CtaType:
    return INTENT_CTA_TYPES.get(normalize_intent(intent), CtaType.LEARN_MORE)


def cta_label(cta_type: CtaType) -> str:
    return CTA_PROFILES[cta_type].label


def default_time_commitment(cta_type: CtaType) -> str:
    return CTA_PROFILES[cta_type].default_time_commitment
