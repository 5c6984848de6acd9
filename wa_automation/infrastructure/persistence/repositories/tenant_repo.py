from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wa_automation.domain.enums import TenantStatus
from wa_automation.infrastructure.persistence.models.tenant import Tenant
from wa_automation.infrastructure.persistence.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    """Repository for the root tenant entity"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Tenant)

    async def get_by_code(self, code: str) -> Tenant | None:
        """Get tenant by unique code"""
        result = await self.db.execute(select(Tenant).where(Tenant.code == code))
        return result.scalar_one_or_none()

    async def get_active(self, tenant_id: str) -> Tenant | None:
        """Get tenant only if it may run automations"""
        result = await self.db.execute(
            select(Tenant).where(
                Tenant.id == tenant_id, Tenant.status == TenantStatus.ACTIVE.value
            )
        )
        return result.scalar_one_or_none()
