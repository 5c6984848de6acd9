"""
Application layer interfaces (ports).

These protocols define the contracts between the application layer
and the infrastructure layer, following the Dependency Inversion Principle.
"""

from wa_automation.application.interfaces.services import (ILanguageModelService,
                                                           IMessagingService,
                                                           IRecordUpdater, JobHandler)

__all__ = [
    "IMessagingService",
    "ILanguageModelService",
    "IRecordUpdater",
    "JobHandler",
]
