from wa_automation.infrastructure.external.llm.llm_service import LLMService

__all__ = ["LLMService"]
