"""Shared base model definitions for YouCra domain objects."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class YouCraBaseModel(BaseModel):
    """Base model configured for YouCra-wide defaults."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


__all__ = ["YouCraBaseModel"]
