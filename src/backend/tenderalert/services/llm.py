"""
LLM gateway client (OpenAI-compatible chat completions).

Used for tender extraction from scraped pages and for bid analysis.
Callers always keep a non-LLM fallback; this client only raises.
"""

import json
import re
from typing import Any

from openai import AsyncOpenAI, OpenAIError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from tenderalert.core.config import get_settings
from tenderalert.core.exceptions import AIServiceException, ServiceNotConfiguredException
from tenderalert.core.logging import LoggerMixin

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_BARE_ARRAY = re.compile(r"\[[\s\S]*\]")
_BARE_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_json_reply(content: str, expect: type = list) -> Any:
    """
    Pull JSON out of a model reply that may wrap it in a code fence or prose.

    Raises:
        AIServiceException: No parseable JSON of the expected type.
    """
    candidate = content.strip()
    fenced = _FENCED_JSON.search(candidate)
    if fenced:
        candidate = fenced.group(1).strip()
    else:
        bare = (_BARE_ARRAY if expect is list else _BARE_OBJECT).search(candidate)
        if bare:
            candidate = bare.group(0)

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise AIServiceException(f"Reply is not valid JSON: {e.msg}") from e

    if not isinstance(parsed, expect):
        raise AIServiceException(f"Expected a JSON {expect.__name__}, got {type(parsed).__name__}")
    return parsed


class LLMClient(LoggerMixin):
    """Chat-completion wrapper with retries."""

    def __init__(self, client: AsyncOpenAI | None = None, model: str | None = None) -> None:
        settings = get_settings()
        if client is None:
            if not settings.llm_api_key:
                raise ServiceNotConfiguredException("LLM gateway", "LLM_API_KEY")
            client = AsyncOpenAI(
                api_key=settings.llm_api_key,
                base_url=settings.llm_base_url,
                timeout=60.0,
            )
        self.client = client
        self.model = model or settings.llm_model

    @retry(
        retry=retry_if_exception_type(OpenAIError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
    )
    async def _complete(self, system: str, user: str, temperature: float, max_tokens: int) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ""

    async def complete(
        self,
        system: str,
        user: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        try:
            content = await self._complete(system, user, temperature, max_tokens)
        except OpenAIError as e:
            self.logger.warning("LLM request failed", model=self.model, error=str(e))
            raise AIServiceException(str(e)) from e
        self.logger.debug("LLM reply received", model=self.model, chars=len(content))
        return content

    async def complete_json(self, system: str, user: str, expect: type = list, **kwargs: Any) -> Any:
        return parse_json_reply(await self.complete(system, user, **kwargs), expect)
