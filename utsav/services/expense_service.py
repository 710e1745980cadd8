"""
Expense business logic.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.models.expense import Expense
from utsav.schemas.donation import (
    ExpenseCreateRequest,
    ExpenseResponse,
    ExpenseUpdateRequest,
)
from utsav.services.audit_service import record_audit, snapshot
from utsav.services.festival_service import resolve_festival_scope


class ExpenseService:
    """Handles expense CRUD and totals within one organization."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_expenses(
        self, organization_id: UUID, festival_id: UUID | None = None
    ) -> list[ExpenseResponse]:
        """Expenses newest first."""
        query = select(Expense).where(Expense.organization_id == organization_id)
        if festival_id is not None:
            query = query.where(Expense.festival_id == festival_id)

        result = await self.db.execute(query.order_by(Expense.created_at.desc()))
        return [ExpenseResponse.model_validate(e) for e in result.scalars().all()]

    async def get_total(self, organization_id: UUID, festival_id: UUID | None = None) -> float:
        query = select(func.coalesce(func.sum(Expense.amount), 0)).where(
            Expense.organization_id == organization_id
        )
        if festival_id is not None:
            query = query.where(Expense.festival_id == festival_id)

        result = await self.db.execute(query)
        return float(result.scalar_one() or 0)

    async def create_expense(
        self,
        organization_id: UUID,
        data: ExpenseCreateRequest,
        actor_id: UUID | None = None,
    ) -> ExpenseResponse:
        festival_values = await resolve_festival_scope(self.db, organization_id, data)
        expense = Expense(
            organization_id=organization_id,
            type=data.type,
            amount=data.amount,
            description=data.description,
            user_id=actor_id,
            **festival_values,
        )
        self.db.add(expense)
        await self.db.flush()
        await self.db.refresh(expense)

        await record_audit(
            self.db,
            organization_id=organization_id,
            table_name="expenses",
            record_id=expense.id,
            action="INSERT",
            new_data=snapshot(expense),
            changed_by=actor_id,
        )
        return ExpenseResponse.model_validate(expense)

    async def update_expense(
        self,
        organization_id: UUID,
        expense_id: UUID,
        data: ExpenseUpdateRequest,
        actor_id: UUID | None = None,
    ) -> ExpenseResponse:
        expense = await self._get(organization_id, expense_id)
        old_data = snapshot(expense)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(expense, field, value)
        await self.db.flush()
        await self.db.refresh(expense)

        await record_audit(
            self.db,
            organization_id=organization_id,
            table_name="expenses",
            record_id=expense.id,
            action="UPDATE",
            old_data=old_data,
            new_data=snapshot(expense),
            changed_by=actor_id,
        )
        return ExpenseResponse.model_validate(expense)

    async def delete_expense(
        self,
        organization_id: UUID,
        expense_id: UUID,
        actor_id: UUID | None = None,
    ) -> None:
        expense = await self._get(organization_id, expense_id)
        old_data = snapshot(expense)

        await self.db.delete(expense)
        await record_audit(
            self.db,
            organization_id=organization_id,
            table_name="expenses",
            record_id=expense_id,
            action="DELETE",
            old_data=old_data,
            changed_by=actor_id,
        )
        await self.db.flush()

    async def _get(self, organization_id: UUID, expense_id: UUID) -> Expense:
        result = await self.db.execute(
            select(Expense).where(
                Expense.id == expense_id,
                Expense.organization_id == organization_id,
            )
        )
        expense = result.scalar_one_or_none()
        if expense is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "EXPENSE_NOT_FOUND", "message": "Expense not found"},
            )
        return expense
