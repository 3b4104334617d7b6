"""
Engine version model for audit trails.

Moderation verdicts are persisted by callers for human review; recording which
table and filter versions produced a verdict keeps that review reproducible.
"""

from typing import List

from pydantic import BaseModel, Field


class EngineVersion(BaseModel):
    """
    Immutable version contract for the moderation decision engine.

    Same version parameters + same provider responses = same verdict.
    """

    engine_version: str = Field(
        description="Orchestrator / fallback chain version", examples=["engine-1.0.0"]
    )
    category_table_version: str = Field(
        description="Provider category mapping table version", examples=["categories-1.0.0"]
    )
    local_filter_version: str = Field(
        description="Local keyword filter table version", examples=["local-filter-1.0.0"]
    )
    primary_model: str = Field(
        description="Primary provider model identifier", examples=["omni-moderation-latest"]
    )
    enabled_stages: List[str] = Field(
        description="Stages active in this deployment, in fallback order",
        examples=[["PRIMARY", "SECONDARY", "LOCAL"]],
    )

    model_config = {"frozen": True}

    def to_repr(self) -> str:
        """
        Short representation for logging.

        Returns:
            Compact string representation with key version components.
        """
        return (
            f"Engine-{self.engine_version}-"
            f"{self.category_table_version}-{'+'.join(self.enabled_stages)}"
        )
