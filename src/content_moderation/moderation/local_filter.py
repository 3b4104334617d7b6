"""
Local keyword filter: the last stage of the fallback chain.

Deliberately crude and deterministic. It runs only when both network providers are
unavailable, performs no I/O and cannot fail, so the chain always ends in a verdict.
"""

from types import MappingProxyType
from typing import Mapping, Optional, Sequence

import structlog

from content_moderation.moderation.schemas import (
    Category,
    ModerationResult,
    ModerationSource,
)


logger = structlog.get_logger(__name__)


# Fixed severity for every local match. Placeholder value, not calibrated against
# provider scores; kept as-is until there are requirements to tune it.
LOCAL_FILTER_SEVERITY = 0.8

# Categories and keywords are checked in declaration order; first match wins.
DEFAULT_KEYWORD_TABLE: Mapping[Category, Sequence[str]] = MappingProxyType({
    Category.HATE_SPEECH: ("hate", "racist", "sexist"),
    Category.HARASSMENT: ("kys", "kill yourself", "die"),
    Category.SPAM: ("discord.gg/", "bit.ly/", "tinyurl.com/"),
})


class LocalFilter:
    """Case-insensitive substring matcher over a fixed keyword table."""

    def __init__(self, keyword_table: Optional[Mapping[Category, Sequence[str]]] = None):
        table = DEFAULT_KEYWORD_TABLE if keyword_table is None else keyword_table
        # Snapshot so later mutation of the caller's table has no effect
        self._table = tuple(
            (category, tuple(keyword.lower() for keyword in keywords))
            for category, keywords in table.items()
        )

    def filter(self, content: str) -> ModerationResult:
        """
        Classify content by keyword.

        Args:
            content: Text to check (any string, including empty)

        Returns:
            ModerationResult tagged LOCAL; flagged on the first keyword found
        """
        lowered = (content or "").lower()

        for category, keywords in self._table:
            for keyword in keywords:
                if keyword in lowered:
                    logger.debug(
                        "local_filter_matched",
                        category=category.value,
                        keyword=keyword
                    )
                    return ModerationResult(
                        flagged=True,
                        category=category,
                        severity=LOCAL_FILTER_SEVERITY,
                        source=ModerationSource.LOCAL,
                        raw={"fallback": True, "matched": keyword},
                    )

        return ModerationResult(
            flagged=False,
            category=Category.OTHER,
            severity=0.0,
            source=ModerationSource.LOCAL,
            raw={"fallback": True},
        )


_default_filter = LocalFilter()


def local_filter(content: str) -> ModerationResult:
    """Run the default keyword table against content."""
    return _default_filter.filter(content)
