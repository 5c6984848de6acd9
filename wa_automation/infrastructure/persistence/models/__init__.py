from wa_automation.infrastructure.persistence.models.job import Job
# Mixins for model composition
from wa_automation.infrastructure.persistence.models.mixins import (
    CuidMixin, MultiTenantModel, SoftDeleteMixin, TenantMixin, TimestampMixin)
from wa_automation.infrastructure.persistence.models.tenant import Tenant
from wa_automation.infrastructure.persistence.models.workflow import (Workflow,
                                                                      WorkflowExecution)

__all__ = [
    # Models
    "Tenant",
    "Workflow",
    "WorkflowExecution",
    "Job",
    # Mixins
    "CuidMixin",
    "TenantMixin",
    "TimestampMixin",
    "SoftDeleteMixin",
    "MultiTenantModel",
]
