"""HTTP adapters around hosted chat-completion providers."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from ..config import LLMConfig
from .credentials import CredentialStore

_AUTO_BASE_URL = object()
_AUTO_API_KEY = object()


class OracleError(RuntimeError):
    """Raised when the model call fails or returns no usable content."""


@dataclass
class LLMRequest:
    """Represents an inference request for the configured provider."""

    prompt: str
    system: Optional[str]
    provider: str
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]


@dataclass(frozen=True)
class ProviderSpec:
    """Defaults and environment lookups for one provider."""

    default_model: str
    default_base_url: str
    api_key_env: tuple[str, ...]


PROVIDERS: Dict[str, ProviderSpec] = {
    "openai": ProviderSpec(
        default_model="gpt-4o",
        default_base_url="https://api.openai.com/v1",
        api_key_env=("PERF_LENS_OPENAI_API_KEY", "OPENAI_API_KEY"),
    ),
    "anthropic": ProviderSpec(
        default_model="claude-3-5-haiku-20241022",
        default_base_url="https://api.anthropic.com/v1",
        api_key_env=("PERF_LENS_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"),
    ),
    "gemini": ProviderSpec(
        default_model="gemini-1.5-flash",
        default_base_url="https://generativelanguage.googleapis.com/v1beta",
        api_key_env=("PERF_LENS_GEMINI_API_KEY", "GEMINI_API_KEY"),
    ),
}

ANTHROPIC_VERSION = "2023-06-01"


class LLMRunner:
    """Executes prompts against the configured provider and returns the response text."""

    DEFAULT_PROVIDER = "anthropic"
    ENV_PROVIDER_KEYS = ("PERFLENS_LLM_PROVIDER",)
    ENV_MODEL_KEYS = ("PERFLENS_LLM_MODEL",)
    ENV_BASE_URL_KEYS = ("PERFLENS_LLM_BASE_URL",)
    ENV_API_KEY_KEYS = ("PERFLENS_LLM_API_KEY",)

    def __init__(
        self,
        model: str | None = None,
        *,
        provider: str | None = None,
        base_url: str | None | object = _AUTO_BASE_URL,
        temperature: Optional[float] = 0.2,
        max_tokens: Optional[int] = 8192,
        api_key: str | None | object = _AUTO_API_KEY,
        request_timeout: Optional[float] = 120.0,
        runner: Callable[[LLMRequest], str] | None = None,
        credentials: CredentialStore | None = None,
    ) -> None:
        self.provider = self._resolve_provider(provider)
        spec = PROVIDERS[self.provider]
        self.model = model or self._first_env_value(self.ENV_MODEL_KEYS) or spec.default_model
        self.base_url = self._resolve_base_url(base_url, spec)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.credentials = credentials or CredentialStore()
        self.api_key = self._resolve_api_key(api_key, spec)
        self.request_timeout = request_timeout
        self._runner = runner or self._http_runner

    @classmethod
    def from_config(cls, config: LLMConfig | None, **overrides: object) -> "LLMRunner":
        """Build a runner from the ``llm`` section, letting non-None ``overrides`` win."""
        settings: Dict[str, object] = {}
        if config is not None:
            settings = {
                "provider": config.provider,
                "model": config.model,
                "temperature": config.temperature,
                "max_tokens": config.max_tokens,
                "base_url": config.base_url,
                "api_key": config.api_key,
                "request_timeout": config.request_timeout,
            }
        settings.update({key: value for key, value in overrides.items() if value is not None})
        kwargs = {key: value for key, value in settings.items() if value is not None}
        return cls(**kwargs)  # type: ignore[arg-type]

    def run(self, prompt: str, *, system: str | None = None) -> str:
        """Send the prompt to the provider and return the response text."""
        request = LLMRequest(
            prompt=prompt,
            system=system,
            provider=self.provider,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
        )
        return self._runner(request)

    @staticmethod
    def _http_runner(request: LLMRequest) -> str:
        if not request.base_url:
            raise OracleError("HTTP runner requires a base_url to be configured.")
        if not request.api_key:
            raise OracleError(
                f"No API key configured for provider '{request.provider}'. "
                f"Run `perflens config set-key KEY --provider {request.provider}` "
                "or set PERFLENS_LLM_API_KEY."
            )
        endpoint, headers, payload = LLMRunner._build_http_call(request)
        data = json.dumps(payload).encode("utf-8")
        http_request = Request(endpoint, data=data, headers=headers, method="POST")
        timeout = request.request_timeout or 120.0

        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:  # pragma: no cover - depends on provider
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise OracleError(f"{request.provider} request failed with status {exc.code}: {message}") from exc
        except URLError as exc:  # pragma: no cover - depends on network
            raise OracleError(f"{request.provider} request failed: {exc.reason}") from exc
        except TimeoutError as exc:  # pragma: no cover - depends on network
            raise OracleError(f"{request.provider} request timed out after {timeout}s") from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise OracleError(f"{request.provider} returned invalid JSON") from exc

        content = LLMRunner._extract_content(request.provider, response_payload)
        if not content.strip():
            raise OracleError(f"{request.provider} returned an empty response")
        return content.strip()

    @staticmethod
    def _build_http_call(request: LLMRequest) -> tuple[str, Dict[str, str], Dict[str, object]]:
        base_url = request.base_url or ""
        headers = {"Content-Type": "application/json"}
        payload: Dict[str, object]

        if request.provider == "anthropic":
            headers["x-api-key"] = request.api_key or ""
            headers["anthropic-version"] = ANTHROPIC_VERSION
            payload = {
                "model": request.model,
                "messages": [{"role": "user", "content": request.prompt}],
                "max_tokens": request.max_tokens or 8192,
            }
            if request.system:
                payload["system"] = request.system
            if request.temperature is not None:
                payload["temperature"] = request.temperature
            return f"{base_url}/messages", headers, payload

        if request.provider == "gemini":
            headers["x-goog-api-key"] = request.api_key or ""
            generation: Dict[str, object] = {}
            if request.temperature is not None:
                generation["temperature"] = request.temperature
            if request.max_tokens is not None:
                generation["maxOutputTokens"] = request.max_tokens
            payload = {"contents": [{"role": "user", "parts": [{"text": request.prompt}]}]}
            if request.system:
                payload["systemInstruction"] = {"parts": [{"text": request.system}]}
            if generation:
                payload["generationConfig"] = generation
            endpoint = f"{base_url}/models/{quote(request.model, safe='')}:generateContent"
            return endpoint, headers, payload

        headers["Authorization"] = f"Bearer {request.api_key}"
        payload = {
            "model": request.model,
            "messages": LLMRunner._build_messages(request.system, request.prompt),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        return f"{base_url}/chat/completions", headers, payload

    @staticmethod
    def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _extract_content(provider: str, payload: Mapping[str, object]) -> str:
        if provider == "anthropic":
            blocks = payload.get("content")
            if not isinstance(blocks, list):
                return ""
            texts = [
                block.get("text", "")
                for block in blocks
                if isinstance(block, dict) and block.get("type") == "text"
            ]
            return "".join(text for text in texts if isinstance(text, str))

        if provider == "gemini":
            candidates = payload.get("candidates")
            if not isinstance(candidates, list) or not candidates:
                return ""
            first = candidates[0]
            content = first.get("content") if isinstance(first, dict) else None
            parts = content.get("parts") if isinstance(content, dict) else None
            if not isinstance(parts, list):
                return ""
            return "".join(
                part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
            )

        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""

    def _resolve_provider(self, provider: str | None) -> str:
        value = provider or self._first_env_value(self.ENV_PROVIDER_KEYS) or self.DEFAULT_PROVIDER
        normalized = value.strip().lower()
        if normalized not in PROVIDERS:
            raise ValueError(
                f"Unsupported AI provider: {value} (expected one of {', '.join(sorted(PROVIDERS))})"
            )
        return normalized

    def _resolve_base_url(self, base_url: str | None | object, spec: ProviderSpec) -> str | None:
        if base_url is None:
            return None
        if base_url is not _AUTO_BASE_URL:
            return str(base_url).rstrip("/")
        env_value = self._first_env_value(self.ENV_BASE_URL_KEYS)
        return (env_value or spec.default_base_url).rstrip("/")

    def _resolve_api_key(self, api_key: str | None | object, spec: ProviderSpec) -> str | None:
        if api_key is _AUTO_API_KEY:
            env_value = self._first_env_value(self.ENV_API_KEY_KEYS + spec.api_key_env)
            return env_value or self.credentials.get(self.provider)
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


__all__ = ["LLMRequest", "LLMRunner", "OracleError", "PROVIDERS"]
