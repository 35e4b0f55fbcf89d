import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from config import settings
from core.exceptions import ConfigurationError, ProviderError
from utils.logger import get_logger

logger = get_logger("llm_client")


@lru_cache(maxsize=1)
def get_provider_api_key() -> str:
    """
    Provider credential, resolved once per process from the environment
    (``OPENROUTER_API_KEY``) or the token file.
    """
    if settings.OPENROUTER_API_KEY:
        return settings.OPENROUTER_API_KEY

    token_path = os.path.expanduser(settings.OPENROUTER_TOKEN_FILE)
    try:
        with open(token_path, "r", encoding="utf-8") as token_file:
            token = token_file.read().strip()
    except OSError:
        token = ""
    if not token:
        raise ConfigurationError(
            f"OPENROUTER_API_KEY not found in environment or {settings.OPENROUTER_TOKEN_FILE} file"
        )
    return token


def extract_provider_error(body: Any) -> Optional[str]:
    """Best-effort human readable message from a provider error body"""
    if not isinstance(body, dict):
        return None

    error = body.get("error") if isinstance(body.get("error"), dict) else {}
    metadata = body.get("metadata") if isinstance(body.get("metadata"), dict) else {}
    candidates = [
        body.get("provider_error"),
        error.get("details"),
        error.get("message"),
        metadata.get("raw"),
        body.get("message"),
        body.get("detail"),
    ]
    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, str):
            candidates.append(first)
        elif isinstance(first, dict):
            candidates.extend([first.get("message"), first.get("detail")])

    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate
    return None


@dataclass
class AssistantReply:
    """The parts of ``choices[0].message`` the conversation loop needs"""
    content: Optional[str]
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)


class LLMClient:
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 4096,
        reasoning_effort: Optional[str] = None,
        timeout: float = 120.0,
        http_client: Any = None,
    ):
        # No SDK retries: a failed round is reported and the user resends
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            max_retries=0,
            timeout=timeout,
            http_client=http_client,
            default_headers={
                "HTTP-Referer": settings.APP_REFERER,
                "X-Title": settings.APP_NAME,
            },
        )
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.reasoning_effort = reasoning_effort

    async def chat(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Optional[AssistantReply]:
        """
        Send one round to the provider.

        Returns None when the response carries no choices.

        Raises:
            ProviderError: non-success status or transport failure
        """
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if tools:
            request["tools"] = tools
        if self.reasoning_effort:
            request["extra_body"] = {"reasoning": {"effort": self.reasoning_effort}}

        try:
            response = await self.client.chat.completions.create(**request)
        except openai.APIStatusError as e:
            reason = e.response.reason_phrase if e.response is not None else None
            logger.error(f"Provider returned {e.status_code} {reason}: {e.body}")
            raise ProviderError(
                str(e),
                status_code=e.status_code,
                reason=reason,
                provider_error=extract_provider_error(e.body),
                details=e.body,
            ) from e
        except openai.APIError as e:
            logger.error(f"Error calling provider: {str(e)}")
            raise ProviderError(str(e), provider_error=str(e)) from e

        if not response.choices:
            return None

        message = response.choices[0].message
        tool_calls = [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.function.name,
                    "arguments": call.function.arguments or "{}",
                },
            }
            for call in (message.tool_calls or [])
        ]
        return AssistantReply(content=message.content, tool_calls=tool_calls)


# Dependency
def get_llm_client() -> LLMClient:
    return LLMClient(
        api_key=get_provider_api_key(),
        model=settings.LLM_MODEL,
        base_url=settings.LLM_BASE_URL,
        temperature=settings.LLM_TEMPERATURE,
        max_tokens=settings.LLM_MAX_TOKENS,
        reasoning_effort=settings.LLM_REASONING_EFFORT,
        timeout=settings.LLM_TIMEOUT_SECONDS,
    )


def get_llm_client_factory() -> Callable[[], LLMClient]:
    """Dependency for routes that build the client only once the request is valid"""
    return get_llm_client
