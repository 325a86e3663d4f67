"""
AI Settings Models for the text-generation service
"""
import os
from enum import Enum
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from screening.utils.exceptions import ConfigurationError


class LLMProvider(str, Enum):
    """Supported text-generation backends"""
    NONE = "none"
    OLLAMA = "ollama"
    OPENROUTER = "openrouter"


DEFAULT_MODELS = {
    LLMProvider.OLLAMA: "llama3.1:8b",
    LLMProvider.OPENROUTER: "qwen/qwen2.5-32b-instruct",
}

DEFAULT_BASE_URLS = {
    LLMProvider.OLLAMA: "http://localhost:11434",
    LLMProvider.OPENROUTER: "https://openrouter.ai/api/v1",
}


class LLMSettings(BaseModel):
    """LLM Configuration Settings"""
    model_config = ConfigDict(protected_namespaces=())

    provider: LLMProvider = Field(default=LLMProvider.NONE, description="Text-generation backend")
    model_name: str = Field(default="", description="LLM model name")
    base_url: str = Field(default="", description="Service base URL")
    api_key: Optional[str] = Field(default=None, description="Bearer key (OpenRouter)")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Generation temperature")
    timeout: int = Field(default=60, ge=1, le=600, description="Request timeout in seconds")
    http_referer: Optional[str] = Field(default=None, description="OpenRouter HTTP-Referer header")
    app_title: Optional[str] = Field(default="screening", description="OpenRouter X-Title header")

    @field_validator("provider", mode="before")
    @classmethod
    def validate_provider(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return LLMProvider.NONE
        return v.strip().lower() if isinstance(v, str) else v

    def resolved_model(self) -> str:
        return self.model_name or DEFAULT_MODELS.get(self.provider, "")

    def resolved_base_url(self) -> str:
        return (self.base_url or DEFAULT_BASE_URLS.get(self.provider, "")).rstrip("/")

    @classmethod
    def from_env(cls) -> "LLMSettings":
        load_dotenv()
        try:
            return cls(
                provider=os.getenv("LLM_PROVIDER", "none"),
                model_name=os.getenv("LLM_MODEL", ""),
                base_url=os.getenv("LLM_BASE_URL", ""),
                api_key=os.getenv("LLM_API_KEY") or None,
                temperature=os.getenv("LLM_TEMPERATURE", "0.2"),
                timeout=os.getenv("LLM_TIMEOUT", "60"),
                http_referer=os.getenv("LLM_HTTP_REFERER") or None,
                app_title=os.getenv("LLM_APP_TITLE", "screening"),
            )
        except PydanticValidationError as e:
            raise ConfigurationError(f"invalid LLM settings: {e}", cause=e) from e
