"""
Version constants for the content moderation engine.

This module defines the version constants recorded alongside moderation verdicts
so that audited decisions can be traced back to the tables that produced them.
"""

from typing import List, Optional

from .config import settings
from .models.engine_version import EngineVersion

# API Version
API_VERSION = "1.0.0"

# Component versions (update these when implementations change)
ENGINE_VERSION = "engine-1.0.0"
CATEGORY_TABLE_VERSION = "categories-1.0.0"
LOCAL_FILTER_VERSION = "local-filter-1.0.0"


def get_current_engine_version(enabled_stages: Optional[List[str]] = None) -> EngineVersion:
    """
    Get current engine version configuration.

    Args:
        enabled_stages: Stages active in the running engine (defaults to LOCAL only)

    Returns:
        EngineVersion instance with current versions
    """
    return EngineVersion(
        engine_version=ENGINE_VERSION,
        category_table_version=CATEGORY_TABLE_VERSION,
        local_filter_version=LOCAL_FILTER_VERSION,
        primary_model=settings.primary_model,
        enabled_stages=enabled_stages or ["LOCAL"],
    )
