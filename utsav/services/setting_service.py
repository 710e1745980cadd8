"""
Per-organization key/value settings.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.models.setting import Setting
from utsav.schemas.setting import SettingResponse
from utsav.services.audit_service import record_audit, snapshot

PREVIOUS_AMOUNT_KEY = "previous_amount"


class SettingService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_setting(self, organization_id: UUID, key: str) -> SettingResponse:
        """Value for a key, or None when it was never set."""
        setting = await self._get(organization_id, key)
        return SettingResponse(key=key, value=setting.value if setting else None)

    async def set_setting(
        self,
        organization_id: UUID,
        key: str,
        value: Any,
        actor_id: UUID | None = None,
    ) -> SettingResponse:
        """Insert or update the value for a key."""
        setting = await self._get(organization_id, key)

        if setting is None:
            setting = Setting(organization_id=organization_id, key=key, value=value)
            self.db.add(setting)
            action, old_data = "INSERT", None
        else:
            old_data = snapshot(setting)
            setting.value = value
            action = "UPDATE"

        await self.db.flush()
        await self.db.refresh(setting)

        await record_audit(
            self.db,
            organization_id=organization_id,
            table_name="settings",
            record_id=setting.id,
            action=action,
            old_data=old_data,
            new_data=snapshot(setting),
            changed_by=actor_id,
        )
        return SettingResponse(key=key, value=setting.value)

    async def get_previous_amount(self, organization_id: UUID) -> float:
        """Carried-over balance; 0 when unset or not a number."""
        setting = await self.get_setting(organization_id, PREVIOUS_AMOUNT_KEY)
        try:
            return float(setting.value or 0)
        except (TypeError, ValueError):
            return 0.0

    async def set_previous_amount(
        self, organization_id: UUID, amount: float, actor_id: UUID | None = None
    ) -> float:
        await self.set_setting(organization_id, PREVIOUS_AMOUNT_KEY, amount, actor_id)
        return amount

    async def _get(self, organization_id: UUID, key: str) -> Setting | None:
        result = await self.db.execute(
            select(Setting).where(
                Setting.organization_id == organization_id,
                Setting.key == key,
            )
        )
        return result.scalar_one_or_none()
