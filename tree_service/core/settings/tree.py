"""Tree maintenance settings.

Controls how the rearranger reacts to dangling parent references, how
cascades batch their flushes, and when leaf scans are considered large.

Environment variables use TREE_ prefix.
Example: TREE_DANGLING_PARENT_POLICY=detach, TREE_CASCADE_BATCH_SIZE=50
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DanglingParentPolicy = Literal["strict", "detach"]


class TreeSettings(BaseSettings):
    """Tree maintenance configuration.

    Attributes:
        dangling_parent_policy: What to do when ``parent_id`` points at a
            record that no longer exists. ``strict`` rejects the save with
            DanglingParentError; ``detach`` turns the node into a root and
            logs a warning.
        cascade_batch_size: Number of descendants rearranged between flushes
            during a cascade. 1 persists each descendant individually.
        leaves_warning_threshold: Number of referenced parent ids above which
            a leaves() scan logs a warning. 0 disables the warning.

    Example:
        settings = TreeSettings(dangling_parent_policy="detach")
        repo = TreeRepository(Node, settings=settings)
    """

    dangling_parent_policy: DanglingParentPolicy = Field(
        default="strict",
        description="Reaction to a parent_id that references a missing record (strict|detach)",
    )
    cascade_batch_size: int = Field(
        default=1,
        ge=1,
        le=10_000,
        description="Descendants rearranged per flush during a cascade",
    )
    leaves_warning_threshold: int = Field(
        default=10_000,
        ge=0,
        description="Referenced parent count that triggers a warning in leaves() (0 disables)",
    )

    model_config = SettingsConfigDict(
        env_prefix="TREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )
