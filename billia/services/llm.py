"""Gemini client wrapper shared by categorization and memo parsing."""

from __future__ import annotations

import json
import logging
import os
import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from billia.errors import LLMUnavailableError
from billia.utils.feature_flags import llm_features_enabled

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "gemini-2.0-flash"

_CODE_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for the Gemini API."""

    api_key: Optional[str] = None
    model_name: str = DEFAULT_MODEL_NAME
    temperature: float = 0.1

    @classmethod
    def from_environment(cls) -> "LLMConfig":
        return cls(
            api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_GENERATIVE_AI_API_KEY") or None,
            model_name=os.getenv("LLM_MODEL_NAME") or DEFAULT_MODEL_NAME,
            temperature=_env_float("LLM_TEMPERATURE", 0.1),
        )


_client = None
_client_lock = threading.Lock()


def get_llm_client(config: Optional[LLMConfig] = None):
    """Return the cached ``genai.Client``; raise when LLM use is not possible."""
    global _client
    if not llm_features_enabled():
        raise LLMUnavailableError("LLM features are disabled")
    config = config or LLMConfig.from_environment()
    if not config.api_key:
        raise LLMUnavailableError("No Gemini API key is configured")
    with _client_lock:
        if _client is None:
            from google import genai

            _client = genai.Client(api_key=config.api_key)
            logger.info("llm_client_initialized: model=%s", config.model_name)
    return _client


def reset_llm_client() -> None:
    """Drop the cached client (useful for tests)."""
    global _client
    with _client_lock:
        _client = None


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE_RE.sub("", text or "").strip()


def generate_json(prompt: str, config: Optional[LLMConfig] = None) -> Dict[str, Any]:
    """Send `prompt` and parse the reply as a JSON object."""
    config = config or LLMConfig.from_environment()
    client = get_llm_client(config)
    logger.info("llm_request: model=%s prompt_chars=%d", config.model_name, len(prompt))
    try:
        response = client.models.generate_content(
            model=config.model_name,
            contents=prompt,
            config={
                "response_mime_type": "application/json",
                "temperature": config.temperature,
            },
        )
    except Exception as exc:
        logger.error("llm_request_failed: %s", exc)
        raise LLMUnavailableError("The AI service request failed") from exc

    result_text = strip_code_fences(response.text or "{}")
    try:
        parsed = json.loads(result_text)
    except json.JSONDecodeError as exc:
        logger.error("llm_response_not_json: %.200s", result_text)
        raise LLMUnavailableError("The AI service returned an unreadable response") from exc
    if not isinstance(parsed, dict):
        raise LLMUnavailableError("The AI service returned an unexpected response")
    return parsed
