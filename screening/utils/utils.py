import json
from typing import Optional, Type, TypeVar

import requests
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from screening.models.ai_settings import LLMProvider, LLMSettings
from screening.utils.exceptions import ExternalServiceError, ResponseParseError
from screening.utils.logging_config import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def _json_body(resp, service_name: str) -> dict:
    try:
        body = resp.json()
    except ValueError as e:
        raise ExternalServiceError(f"{service_name} returned a non-JSON body", service_name=service_name, cause=e)
    return body if isinstance(body, dict) else {}


class OllamaChatModel:
    """Chat client for a local Ollama server (/api/chat)."""

    service_name = "ollama"

    def __init__(self, settings: LLMSettings):
        self.settings = settings
        self.model_name = settings.resolved_model()
        self.base_url = settings.resolved_base_url()

    def ask(self, system_prompt: str, user_prompt: str) -> str:
        try:
            resp = requests.post(
                f"{self.base_url}/api/chat",
                json={
                    "model": self.model_name,
                    "messages": [
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    "options": {"temperature": self.settings.temperature},
                    "stream": False,  # important
                },
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            raise ExternalServiceError(f"ollama request failed: {e}", service_name=self.service_name, cause=e)
        if not resp.ok:
            raise ExternalServiceError(
                f"ollama http {resp.status_code}: {resp.text[:300]}",
                service_name=self.service_name,
                status_code=resp.status_code,
            )
        content = ((_json_body(resp, self.service_name).get("message") or {}).get("content") or "")
        if not content.strip():
            raise ExternalServiceError("ollama returned an empty response", service_name=self.service_name)
        return content


class OpenRouterChatModel:
    """OpenAI-compatible chat completions client (OpenRouter by default)."""

    service_name = "openrouter"

    def __init__(self, settings: LLMSettings):
        self.settings = settings
        self.model_name = settings.resolved_model()
        self.base_url = settings.resolved_base_url()

    def _headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.settings.api_key}",
        }
        if self.settings.http_referer:
            headers["HTTP-Referer"] = self.settings.http_referer
        if self.settings.app_title:
            headers["X-Title"] = self.settings.app_title
        return headers

    def ask(self, system_prompt: str, user_prompt: str) -> str:
        if not self.settings.api_key:
            raise ExternalServiceError("openrouter api key is empty", service_name=self.service_name)
        try:
            resp = requests.post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json={
                    "model": self.model_name,
                    "messages": [
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    "temperature": self.settings.temperature,
                },
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            raise ExternalServiceError(f"openrouter request failed: {e}", service_name=self.service_name, cause=e)
        if not resp.ok:
            raise ExternalServiceError(
                f"openrouter http {resp.status_code}: {resp.text[:300]}",
                service_name=self.service_name,
                status_code=resp.status_code,
            )
        choices = _json_body(resp, self.service_name).get("choices") or []
        if not choices:
            raise ExternalServiceError("no choices returned by model", service_name=self.service_name)
        return (choices[0].get("message") or {}).get("content") or ""


def get_chat_model(settings: Optional[LLMSettings] = None):
    """Build the configured chat model, or None when no service is configured."""
    settings = settings or LLMSettings.from_env()
    if settings.provider == LLMProvider.OLLAMA:
        return OllamaChatModel(settings)
    if settings.provider == LLMProvider.OPENROUTER:
        if not settings.api_key:
            logger.warning("LLM_PROVIDER=openrouter but LLM_API_KEY is empty; text generation disabled")
            return None
        return OpenRouterChatModel(settings)
    return None


def parse_llm_json(raw: str, model_cls: Type[M]) -> M:
    """Decode a JSON object from a text-generation reply.

    Stage 1 decodes the whole reply. Stage 2 decodes the slice between the
    first "{" and the last "}" (replies wrapped in prose or code fences).
    Raises ResponseParseError when neither stage yields a valid object.
    """
    text = (raw or "").strip()
    target = model_cls.__name__

    try:
        return model_cls.model_validate_json(text)
    except PydanticValidationError:
        pass

    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise ResponseParseError("no JSON object found in service response", target=target, raw_excerpt=text)

    try:
        return model_cls.model_validate(json.loads(text[start:end + 1]))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise ResponseParseError(
            "could not decode JSON object from service response",
            target=target,
            raw_excerpt=text,
            cause=e,
        ) from e
