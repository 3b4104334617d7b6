"""
Category mapping tables for classification providers.

Each provider reports its verdict in its own vocabulary. This module declares that
vocabulary as an enum per provider and maps every native attribute to exactly one
internal ``Category`` plus, where the client applies it, a flag threshold.

Declaration order matters: adapters scan natives in table order, so on equal
scores the attribute declared first wins.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Type

import structlog

from content_moderation.moderation.schemas import Category


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AttributeMapping:
    """Internal category and flag threshold for one native attribute."""
    category: Category
    threshold: Optional[float] = None  # None: provider supplies its own flag bit


# ============================================================================
# PRIMARY PROVIDER (OpenAI moderation)
# ============================================================================

class OpenAICategory(str, Enum):
    """Native categories of the OpenAI moderation endpoint, in tie-break order."""
    HATE = "hate"
    HATE_THREATENING = "hate/threatening"
    HARASSMENT = "harassment"
    HARASSMENT_THREATENING = "harassment/threatening"
    SELF_HARM = "self-harm"
    SELF_HARM_INTENT = "self-harm/intent"
    SELF_HARM_INSTRUCTIONS = "self-harm/instructions"
    SEXUAL = "sexual"
    SEXUAL_MINORS = "sexual/minors"
    VIOLENCE = "violence"
    VIOLENCE_GRAPHIC = "violence/graphic"
    ILLICIT = "illicit"
    ILLICIT_VIOLENT = "illicit/violent"


OPENAI_CATEGORY_MAP: Mapping[OpenAICategory, AttributeMapping] = MappingProxyType({
    OpenAICategory.HATE: AttributeMapping(Category.HATE_SPEECH),
    OpenAICategory.HATE_THREATENING: AttributeMapping(Category.HATE_SPEECH),
    OpenAICategory.HARASSMENT: AttributeMapping(Category.HARASSMENT),
    OpenAICategory.HARASSMENT_THREATENING: AttributeMapping(Category.HARASSMENT),
    OpenAICategory.SELF_HARM: AttributeMapping(Category.SELF_HARM),
    OpenAICategory.SELF_HARM_INTENT: AttributeMapping(Category.SELF_HARM),
    OpenAICategory.SELF_HARM_INSTRUCTIONS: AttributeMapping(Category.SELF_HARM),
    OpenAICategory.SEXUAL: AttributeMapping(Category.NSFW),
    OpenAICategory.SEXUAL_MINORS: AttributeMapping(Category.NSFW),
    OpenAICategory.VIOLENCE: AttributeMapping(Category.VIOLENCE),
    OpenAICategory.VIOLENCE_GRAPHIC: AttributeMapping(Category.VIOLENCE),
    OpenAICategory.ILLICIT: AttributeMapping(Category.OTHER),
    OpenAICategory.ILLICIT_VIOLENT: AttributeMapping(Category.VIOLENCE),
})


# ============================================================================
# SECONDARY PROVIDER (Perspective)
# ============================================================================

class PerspectiveAttribute(str, Enum):
    """Perspective attributes requested by the secondary adapter, in tie-break order."""
    SEVERE_TOXICITY = "SEVERE_TOXICITY"
    IDENTITY_ATTACK = "IDENTITY_ATTACK"
    THREAT = "THREAT"
    SEXUALLY_EXPLICIT = "SEXUALLY_EXPLICIT"
    INSULT = "INSULT"
    PROFANITY = "PROFANITY"


# Thresholds are per attribute: sexual content and insults need more confidence
# than identity attacks or threats before they flag.
PERSPECTIVE_ATTRIBUTE_MAP: Mapping[PerspectiveAttribute, AttributeMapping] = MappingProxyType({
    PerspectiveAttribute.SEVERE_TOXICITY: AttributeMapping(Category.HARASSMENT, 0.5),
    PerspectiveAttribute.IDENTITY_ATTACK: AttributeMapping(Category.HATE_SPEECH, 0.5),
    PerspectiveAttribute.THREAT: AttributeMapping(Category.VIOLENCE, 0.5),
    PerspectiveAttribute.SEXUALLY_EXPLICIT: AttributeMapping(Category.NSFW, 0.7),
    PerspectiveAttribute.INSULT: AttributeMapping(Category.HARASSMENT, 0.7),
    PerspectiveAttribute.PROFANITY: AttributeMapping(Category.OTHER, 0.8),
})


# ============================================================================
# LOOKUPS
# ============================================================================

def validate_mapping_table(
    table: Mapping[Enum, AttributeMapping],
    native_enum: Type[Enum],
    require_threshold: bool = False
) -> None:
    """
    Check that a mapping table covers its native vocabulary exactly once.

    Args:
        table: Native attribute -> AttributeMapping
        native_enum: Enum declaring the provider's native vocabulary
        require_threshold: Whether every entry must carry a threshold in [0, 1]

    Raises:
        ValueError: If the table is not exhaustive or a threshold is invalid
    """
    missing = [member.value for member in native_enum if member not in table]
    extra = [str(key) for key in table if not isinstance(key, native_enum)]
    if missing or extra:
        raise ValueError(
            f"Mapping table for {native_enum.__name__} is not exhaustive: "
            f"missing={missing} extra={extra}"
        )

    for attribute, mapping in table.items():
        if not isinstance(mapping.category, Category):
            raise ValueError(f"{attribute.value} maps to non-category {mapping.category!r}")
        if require_threshold:
            if mapping.threshold is None or not 0.0 <= mapping.threshold <= 1.0:
                raise ValueError(
                    f"{attribute.value} threshold must be in [0, 1], got {mapping.threshold!r}"
                )


def map_openai_category(native_name: str) -> Category:
    """
    Map an OpenAI native category name to an internal category.

    Categories the provider added after this table was written map to OTHER.
    """
    try:
        return OPENAI_CATEGORY_MAP[OpenAICategory(native_name)].category
    except ValueError:
        logger.debug("unmapped_native_category", provider="openai", native=native_name)
        return Category.OTHER


def perspective_mapping(attribute: PerspectiveAttribute) -> AttributeMapping:
    return PERSPECTIVE_ATTRIBUTE_MAP[attribute]


validate_mapping_table(OPENAI_CATEGORY_MAP, OpenAICategory)
validate_mapping_table(PERSPECTIVE_ATTRIBUTE_MAP, PerspectiveAttribute, require_threshold=True)
