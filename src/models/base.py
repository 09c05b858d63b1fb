"""Shared Pydantic base models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class OvulinkBase(BaseModel):
    """Base model with shared config for all Ovulink schemas.

    ``from_attributes`` lets response models validate straight from the
    engine's dataclasses.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ErrorDetail(BaseModel):
    detail: str
