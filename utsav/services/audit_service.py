"""
Audit trail for organization data.

Services call `record_audit` next to every insert, update and delete on
donations, expenses, images, festivals and settings. Rows are append-only.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.models.audit_log import AuditLog
from utsav.models.base import Base
from utsav.schemas.audit import AuditLogListResponse, AuditLogResponse


def snapshot(row: Base) -> dict[str, Any]:
    """JSON-safe copy of a row's column values."""
    return jsonable_encoder(
        {column.name: getattr(row, column.name) for column in row.__table__.columns}
    )


async def record_audit(
    db: AsyncSession,
    *,
    organization_id: UUID,
    table_name: str,
    record_id: UUID,
    action: str,
    old_data: dict[str, Any] | None = None,
    new_data: dict[str, Any] | None = None,
    changed_by: UUID | None = None,
) -> None:
    db.add(
        AuditLog(
            organization_id=organization_id,
            table_name=table_name,
            record_id=record_id,
            action=action,
            old_data=old_data,
            new_data=new_data,
            changed_by=changed_by,
        )
    )


class AuditService:
    """Read side of the audit trail."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_logs(
        self,
        organization_id: UUID,
        limit: int = 50,
        table_name: str | None = None,
    ) -> AuditLogListResponse:
        """Most recent audit entries for an organization, newest first."""
        filters = [AuditLog.organization_id == organization_id]
        if table_name is not None:
            filters.append(AuditLog.table_name == table_name)

        total_result = await self.db.execute(
            select(func.count()).select_from(AuditLog).where(*filters)
        )
        result = await self.db.execute(
            select(AuditLog)
            .where(*filters)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        logs = [AuditLogResponse.model_validate(log) for log in result.scalars().all()]
        return AuditLogListResponse(logs=logs, total=total_result.scalar_one())
