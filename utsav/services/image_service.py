"""
Image gallery business logic.

Uploads write the file into the storage bucket first and then insert
the row. Deletes remove the stored object first and then the row; the
two steps are not transactional.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.core.storage import StorageBucket
from utsav.models.image import Image
from utsav.schemas.donation import FestivalScope
from utsav.schemas.image import ImageResponse
from utsav.services.audit_service import record_audit, snapshot
from utsav.services.festival_service import resolve_festival_scope

logger = structlog.get_logger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


class ImageService:
    """Handles gallery uploads, listing and deletion within one organization."""

    def __init__(self, db: AsyncSession, bucket: StorageBucket) -> None:
        self.db = db
        self.bucket = bucket

    async def list_images(
        self, organization_id: UUID, festival_id: UUID | None = None
    ) -> list[ImageResponse]:
        """Images newest first."""
        query = select(Image).where(Image.organization_id == organization_id)
        if festival_id is not None:
            query = query.where(Image.festival_id == festival_id)

        result = await self.db.execute(query.order_by(Image.created_at.desc()))
        return [ImageResponse.model_validate(i) for i in result.scalars().all()]

    async def upload_image(
        self,
        organization_id: UUID,
        *,
        filename: str,
        content: bytes,
        content_type: str | None,
        title: str,
        description: str | None,
        scope: FestivalScope,
        actor_id: UUID | None = None,
    ) -> ImageResponse:
        """
        Store the file at public/<epoch-millis>.<ext> and record it.

        Raises 415 for non-image uploads and 400 for empty files.
        """
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
                detail={"code": "UNSUPPORTED_FILE", "message": "Only image uploads are accepted"},
            )
        if not content:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "EMPTY_FILE", "message": "Uploaded file is empty"},
            )

        festival_values = await resolve_festival_scope(self.db, organization_id, scope)

        path = self.bucket.object_path(filename)
        await self.bucket.upload(path, content)

        image = Image(
            organization_id=organization_id,
            title=title,
            description=description,
            image_url=self.bucket.public_url(path),
            image_path=path,
            user_id=actor_id,
            **festival_values,
        )
        self.db.add(image)
        await self.db.flush()
        await self.db.refresh(image)

        await record_audit(
            self.db,
            organization_id=organization_id,
            table_name="images",
            record_id=image.id,
            action="INSERT",
            new_data=snapshot(image),
            changed_by=actor_id,
        )
        return ImageResponse.model_validate(image)

    async def delete_image(
        self,
        organization_id: UUID,
        image_id: UUID,
        actor_id: UUID | None = None,
    ) -> None:
        result = await self.db.execute(
            select(Image).where(
                Image.id == image_id,
                Image.organization_id == organization_id,
            )
        )
        image = result.scalar_one_or_none()
        if image is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "IMAGE_NOT_FOUND", "message": "Image not found"},
            )

        old_data = snapshot(image)
        await self.bucket.remove(image.image_path)

        await self.db.delete(image)
        await record_audit(
            self.db,
            organization_id=organization_id,
            table_name="images",
            record_id=image_id,
            action="DELETE",
            old_data=old_data,
            changed_by=actor_id,
        )
        await self.db.flush()
