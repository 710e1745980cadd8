"""
Image gallery endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.core.database import get_db
from utsav.core.dependencies import get_optional_user, get_organization, get_storage_bucket
from utsav.core.storage import StorageBucket
from utsav.models.organization import Organization
from utsav.models.user import User
from utsav.schemas.donation import FestivalScope
from utsav.schemas.image import ImageResponse
from utsav.services.image_service import ImageService

router = APIRouter()


def get_image_service(
    db: AsyncSession = Depends(get_db),
    bucket: StorageBucket = Depends(get_storage_bucket),
) -> ImageService:
    return ImageService(db=db, bucket=bucket)


@router.get(
    "/organizations/{slug}/images",
    response_model=list[ImageResponse],
    summary="List gallery images",
)
async def list_images(
    festival_id: UUID | None = Query(default=None),
    org: Organization = Depends(get_organization),
    service: ImageService = Depends(get_image_service),
) -> list[ImageResponse]:
    return await service.list_images(org.id, festival_id=festival_id)


@router.post(
    "/organizations/{slug}/images",
    response_model=ImageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an image",
)
async def upload_image(
    file: UploadFile = File(...),
    title: str = Form(..., min_length=1, max_length=200),
    description: str | None = Form(default=None),
    festival_id: UUID | None = Form(default=None),
    festival_name: str | None = Form(default=None),
    festival_year: int | None = Form(default=None),
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: ImageService = Depends(get_image_service),
) -> ImageResponse:
    """Multipart upload. The file is served from /storage/<bucket>/public/<epoch-millis>.<ext>."""
    content = await file.read()
    return await service.upload_image(
        org.id,
        filename=file.filename or "upload",
        content=content,
        content_type=file.content_type,
        title=title,
        description=description,
        scope=FestivalScope(
            festival_id=festival_id,
            festival_name=festival_name,
            festival_year=festival_year,
        ),
        actor_id=user.id if user else None,
    )


@router.delete(
    "/organizations/{slug}/images/{image_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete an image",
)
async def delete_image(
    image_id: UUID,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: ImageService = Depends(get_image_service),
) -> dict:
    """Removes the stored file, then the row."""
    await service.delete_image(org.id, image_id, user.id if user else None)
    return {}
