"""
Tenant domain entity.

This represents the business concept of a tenant, independent of
how it's stored in the database.
"""

from dataclasses import dataclass

from wa_automation.domain.enums import TenantStatus


@dataclass
class TenantEntity:
    """Domain entity for Tenant (business rules separate from persistence)"""

    id: str
    code: str
    name: str
    status: TenantStatus

    def can_run_automations(self) -> bool:
        """
        Business rule: only ACTIVE tenants may create, trigger or enqueue work
        """
        return self.status == TenantStatus.ACTIVE

    def suspend(self) -> None:
        """
        Suspend tenant.
        Archived tenants cannot be suspended.
        """
        if self.status == TenantStatus.ARCHIVED:
            raise ValueError("Archived tenants cannot be suspended")
        self.status = TenantStatus.SUSPENDED
