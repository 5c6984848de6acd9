from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from wa_automation.domain.entities.tenant import TenantEntity
from wa_automation.domain.enums import TenantStatus
from wa_automation.infrastructure.persistence.database import Base
from wa_automation.infrastructure.persistence.models.mixins import (
    CuidMixin, TimestampMixin)


class Tenant(CuidMixin, TimestampMixin, Base):
    """
    Root tenant entity for multi-tenant architecture (one WhatsApp business).

    Note: Tenant does not have a tenant_id since it is the root of the hierarchy.
    Uses CuidMixin and TimestampMixin only (no TenantMixin).
    """

    __tablename__ = "tenant"

    # Business fields
    code: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=TenantStatus.ACTIVE.value, index=True
    )

    __table_args__ = (
        CheckConstraint(f"status IN {tuple(TenantStatus.values())}", name="tenant_status_check"),
    )

    def to_entity(self) -> TenantEntity:
        return TenantEntity(
            id=self.id, code=self.code, name=self.name, status=TenantStatus(self.status)
        )
