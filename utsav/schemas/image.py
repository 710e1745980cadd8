"""
Image gallery schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class ImageResponse(BaseModel):
    id: UUID
    organization_id: UUID
    festival_id: UUID | None
    festival_name: str | None
    festival_year: int | None
    title: str
    description: str | None
    image_url: str
    image_path: str
    user_id: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
