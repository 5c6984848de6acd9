"""
Service interfaces (ports) for the application layer.

These protocols define the contracts for the collaborators the workflow
engine and the job workers call out to.
Following Dependency Inversion Principle (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from wa_automation.infrastructure.persistence.models.job import Job


class IMessagingService(Protocol):
    """Protocol for outbound WhatsApp messaging (DIP)"""

    async def send_message(self, recipient: str, text: str, session_id: str | None = None) -> None:
        """Send a text message; raises on delivery failure"""
        ...


class ILanguageModelService(Protocol):
    """Protocol for language model completions (DIP)"""

    async def generate_response(self, system_prompt: str, user_prompt: str) -> str:
        """Return the model's raw text response"""
        ...


class IRecordUpdater(Protocol):
    """Protocol for generic record updates on a named table (DIP)"""

    async def update_records(
        self, table: str, updates: dict[str, Any], where: dict[str, Any]
    ) -> int:
        """Apply updates to rows matching every where field; returns rows affected"""
        ...


class JobHandler(Protocol):
    """Handler for one job type, registered with a worker"""

    job_type: str

    async def handle(self, job: Job) -> dict[str, Any] | None:
        """Process the job. The return value is stored as the job result."""
        ...
