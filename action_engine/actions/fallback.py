"""
兜底行动生成

目录服务不可用或候选不足时，按意图模板合成通用行动。纯函数，不访问任何外部资源。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from action_engine.actions.cta import (
    CtaType,
    cta_type_for_intent,
    default_time_commitment,
    normalize_intent,
)
from action_engine.data.models import Action, IntentContext, utcnow

FALLBACK_IMPACT = 3
FALLBACK_URGENCY = 3
EMPTY_TOPIC = "your cause"
EMPTY_LOCATION = "your community"


@dataclass(frozen=True)
class FallbackTemplate:
    title: str
    description: str
    organization: str = "{topic} Action Network"
    time_commitment: Optional[str] = None
    link: Optional[str] = None
    next_steps: tuple[str, ...] = field(default_factory=tuple)


INTENT_TEMPLATES: dict[str, tuple[FallbackTemplate, ...]] = {
    "be heard": (
        FallbackTemplate(
            title="Contact Your Representatives About {topic}",
            description=(
                "Make your voice heard on {topic} policy by contacting your local representatives. "
                "Your input can directly influence legislative decisions."
            ),
        ),
        FallbackTemplate(
            title="Submit Public Comment on {topic}",
            description=(
                "Participate in the democratic process by submitting comments on pending "
                "{topic} regulations and policies."
            ),
        ),
    ),
    "volunteer": (
        FallbackTemplate(
            title="Volunteer for {topic} Organizations in {location}",
            description=(
                "Find meaningful volunteer opportunities with local organizations working on "
                "{topic} in your area."
            ),
        ),
        FallbackTemplate(
            title="Community Science Projects: {topic}",
            description=(
                "Join citizen science initiatives that gather data and research on {topic} "
                "issues affecting your community."
            ),
        ),
    ),
    "get help": (
        FallbackTemplate(
            title="{topic} Support Resources in {location}",
            description="Access immediate and ongoing support resources for {topic}-related challenges in your area.",
        ),
        FallbackTemplate(
            title="Connect with {topic} Support Network",
            description="Join a community of people addressing similar {topic} challenges and share resources.",
        ),
    ),
    "donate": (
        FallbackTemplate(
            title="Support {topic} Organizations in {location}",
            description="Direct financial support to vetted organizations working on {topic} issues in your community.",
            link="#donate-local",
        ),
        FallbackTemplate(
            title="Emergency {topic} Relief Fund",
            description="Contribute to rapid-response funding for urgent {topic} situations affecting {location}.",
            link="#emergency-fund",
        ),
    ),
    "organize": (
        FallbackTemplate(
            title="Start a {topic} Action Group in {location}",
            description="Build grassroots power by organizing community members around {topic} issues.",
            next_steps=(
                "Identify key stakeholders and allies",
                "Research local {topic} policy landscape",
                "Plan initial community meeting",
                "Develop action plan and timeline",
            ),
        ),
        FallbackTemplate(
            title="Join Existing {topic} Coalition",
            description="Connect with established groups working on {topic} to amplify collective impact.",
            next_steps=(
                "Attend coalition meetings",
                "Participate in planned actions",
                "Recruit additional members",
                "Share resources and expertise",
            ),
        ),
    ),
}

GENERIC_TEMPLATES: tuple[FallbackTemplate, ...] = (
    FallbackTemplate(
        title="Take Action on {topic}",
        description=(
            "Get involved with {topic} initiatives in {location}. "
            "Explore opportunities to make a meaningful impact."
        ),
        organization="Local Community Groups",
        time_commitment="1-2 hours",
        next_steps=(
            "Research local organizations",
            "Connect with community leaders",
            "Attend community meetings",
        ),
    ),
    FallbackTemplate(
        title="Learn About {topic} in {location}",
        description="Read up on the {topic} issues facing {location} and find groups already working on them.",
        organization="Local Community Groups",
    ),
)


def _slug(value: str) -> str:
    return "-".join(value.split()).casefold() or "none"


def templates_for_intent(intent: str) -> tuple[FallbackTemplate, ...]:
    return INTENT_TEMPLATES.get(normalize_intent(intent), GENERIC_TEMPLATES)


def generate_fallback_actions(
    context: IntentContext,
    *,
    generated_at: Optional[datetime] = None,
) -> list[Action]:
    """
    生成兜底行动（至少 2 条）。

    - 已知意图使用对应的两条模板，其余意图使用通用模板
    - impact / urgency 固定为 3，ID 形如 fallback-<intent>-<topic>-<n>，可重复生成
    """
    topic = context.topic.strip() or EMPTY_TOPIC
    location = context.location.strip() or EMPTY_LOCATION
    templates = templates_for_intent(context.intent)
    cta_type = cta_type_for_intent(context.intent) if templates is not GENERIC_TEMPLATES else CtaType.LEARN_MORE
    now = generated_at or utcnow()

    actions: list[Action] = []
    for n, template in enumerate(templates, start=1):
        actions.append(
            Action(
                id=f"fallback-{_slug(normalize_intent(context.intent))}-{_slug(context.topic)}-{n}",
                title=template.title.format(topic=topic, location=location),
                description=template.description.format(topic=topic, location=location),
                tags=[t for t in (context.topic, context.location, context.intent) if t],
                intent=context.intent,
                topic=context.topic,
                location=context.location,
                cta_type=cta_type,
                impact=FALLBACK_IMPACT,
                urgency=FALLBACK_URGENCY,
                time_commitment=template.time_commitment or default_time_commitment(cta_type),
                organization_name=template.organization.format(topic=topic, location=location),
                link=template.link,
                generated_at=now,
                source="fallback",
                next_steps=[step.format(topic=topic) for step in template.next_steps],
            )
        )
    return actions
