"""Language model client for OpenAI-compatible chat completion APIs"""

import httpx

from wa_automation.domain.exceptions import ActionExecutionError
from wa_automation.infrastructure.config.settings import get_settings
from wa_automation.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class LLMService:
    """Generates a single response from a system prompt and a user prompt"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.llm_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.llm_api_key
        self.model = model or settings.llm_model
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self.timeout = timeout or settings.llm_timeout_seconds
        self._transport = transport

    async def generate_response(self, system_prompt: str, user_prompt: str) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    json={
                        "model": self.model,
                        "messages": messages,
                        "temperature": self.temperature,
                        "max_tokens": self.max_tokens,
                    },
                    headers=headers,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ActionExecutionError(
                    f"LLM request failed with status {e.response.status_code}: {e.response.text}",
                    action_type="call_llm",
                    status_code=e.response.status_code,
                ) from e
            except httpx.HTTPError as e:
                raise ActionExecutionError(f"LLM request failed: {e}", action_type="call_llm") from e

        choices = response.json().get("choices") or []
        if not choices:
            raise ActionExecutionError(f"no response from model {self.model}", action_type="call_llm")

        content = choices[0].get("message", {}).get("content") or ""
        logger.debug("LLM %s returned %d characters", self.model, len(content))
        return content
