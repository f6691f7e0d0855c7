"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, ``lineagectl.toml`` only carries
overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GenealogyConfig(BaseModel):
    """[genealogy] section."""

    model_config = {"frozen": True}

    enforce_acyclic: bool = True
    default_stem: str = "stem"


class OutputConfig(BaseModel):
    """[output] section."""

    model_config = {"frozen": True}

    tree_max_depth: int = Field(default=32, ge=1)


class LineageConfig(BaseModel):
    """Root model for a ``lineagectl.toml`` file."""

    model_config = {"frozen": True}

    genealogy: GenealogyConfig = Field(default_factory=GenealogyConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
