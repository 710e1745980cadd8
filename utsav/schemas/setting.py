"""
Organization setting schemas.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SettingResponse(BaseModel):
    key: str
    value: Any = None


class SettingUpdateRequest(BaseModel):
    """Request body for PUT /organizations/{slug}/settings/{key}."""

    value: Any = None


class PreviousAmountRequest(BaseModel):
    """Carried-over balance from the previous festival."""

    amount: float = Field(ge=0)


class PreviousAmountResponse(BaseModel):
    amount: float
