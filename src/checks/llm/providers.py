"""Review providers: OpenAI-compatible chat completions and Ollama."""

import json
import re
from typing import Any

import requests

from common.env import env
from common.logger import get_logger
from extract.models import Element

from .base import (
    ProviderError,
    ProviderFatalError,
    ProviderReview,
    ReviewIssue,
    ReviewProvider,
)
from .prompts import LOW_FALSE_POSITIVE, system_prompt, user_prompt
from .rate_limiter import RateLimiter

logger = get_logger(__name__)

# Status codes meaning the configuration itself is wrong (key, endpoint, model)
FATAL_STATUS_CODES = {401, 403, 404}

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def parse_review_response(text: str) -> tuple[list[ReviewIssue], str | None]:
    """Parse a model reply into issues and an optional rewrite.

    The reply should be a JSON object with an ``issues`` list, possibly
    wrapped in prose or a code fence. Anything else that is not empty becomes
    a single info-level issue carrying the raw text.

    Args:
        text: Raw model output

    Returns:
        Tuple of (issues, rewrite)
    """
    stripped = text.strip()
    if not stripped:
        return [], None

    match = _JSON_OBJECT.search(stripped)
    data: Any = None
    if match:
        try:
            data = json.loads(match.group(0))
        except ValueError:
            data = None

    if not isinstance(data, dict):
        return [ReviewIssue(message=stripped, severity="info")], None

    issues = []
    for item in data.get("issues") or []:
        if isinstance(item, str):
            message, severity = item, "info"
        elif isinstance(item, dict):
            message, severity = str(item.get("message", "")), str(item.get("severity", "info"))
        else:
            continue
        if message.strip():
            issues.append(ReviewIssue(message=message.strip(), severity=severity))

    rewrite = data.get("rewrite")
    return issues, rewrite if isinstance(rewrite, str) and rewrite.strip() else None


class HTTPReviewProvider(ReviewProvider):
    """Shared request handling for HTTP providers."""

    timeout = 60

    def __init__(self, model: str, mode: str = LOW_FALSE_POSITIVE, requests_per_minute: int = 60):
        """Initialize the provider.

        Args:
            model: Model name
            mode: Review mode (lowFalsePositive or highRecall)
            requests_per_minute: Rate limit (0 disables limiting)
        """
        self._model = model
        self.mode = mode
        self.rate_limiter = RateLimiter(
            requests_per_period=requests_per_minute,
            period_seconds=60,
        )
        self.session = requests.Session()

    @property
    def model(self) -> str:
        return self._model

    def _post(self, url: str, payload: dict[str, Any], headers: dict[str, str] | None = None) -> Any:
        """POST a JSON payload and decode the JSON reply.

        Raises:
            ProviderFatalError: On 401/403/404
            ProviderError: On any other request failure
        """
        self.rate_limiter.wait_if_needed()
        try:
            response = self.session.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderError(f"{self.id} request failed: {e}") from e

        if response.status_code in FATAL_STATUS_CODES:
            raise ProviderFatalError(
                f"{self.id} rejected the request ({response.status_code}): {response.text[:200]}"
            )
        try:
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            raise ProviderError(f"{self.id} request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"{self.id} returned invalid JSON: {e}") from e

    def _build_review(self, prompt: str, reply: str) -> ProviderReview:
        issues, rewrite = parse_review_response(reply)
        return ProviderReview(issues=issues, prompt=prompt, response=reply, rewrite=rewrite)


class OpenAIProvider(HTTPReviewProvider):
    """Client for OpenAI-compatible chat completion endpoints."""

    id = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        mode: str = LOW_FALSE_POSITIVE,
        requests_per_minute: int = 60,
    ):
        super().__init__(model=model, mode=mode, requests_per_minute=requests_per_minute)
        self.api_key = api_key
        self.base_url = base_url

    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_url and self.model)

    def review(self, element: Element) -> ProviderReview:
        prompt = user_prompt(element)
        payload = {
            "model": self.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": system_prompt(self.mode)},
                {"role": "user", "content": prompt},
            ],
        }
        data = self._post(
            self.base_url,
            payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        try:
            reply = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected openai response shape: {e}") from e
        return self._build_review(prompt, reply)


class OllamaProvider(HTTPReviewProvider):
    """Client for a local Ollama server (``/api/generate``)."""

    id = "ollama"

    def __init__(
        self,
        endpoint: str,
        model: str,
        mode: str = LOW_FALSE_POSITIVE,
        requests_per_minute: int = 0,
    ):
        super().__init__(model=model, mode=mode, requests_per_minute=requests_per_minute)
        self.endpoint = endpoint.rstrip("/")

    def is_configured(self) -> bool:
        return bool(self.endpoint and self.model)

    def review(self, element: Element) -> ProviderReview:
        prompt = user_prompt(element)
        payload = {
            "model": self.model,
            "system": system_prompt(self.mode),
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {"temperature": 0},
        }
        data = self._post(f"{self.endpoint}/api/generate", payload)
        if not isinstance(data, dict) or not isinstance(data.get("response"), str):
            raise ProviderError("Unexpected ollama response shape")
        return self._build_review(prompt, data["response"])


def create_provider(
    provider_id: str | None = None,
    mode: str | None = None,
) -> ReviewProvider:
    """Build the configured provider from the environment.

    Args:
        provider_id: "openai" or "ollama" (default from env)
        mode: Review mode (default from env)

    Raises:
        ValueError: If the provider id is unknown
    """
    provider_id = provider_id or env.llm_provider()
    mode = mode or env.llm_review_mode()

    if provider_id == "openai":
        return OpenAIProvider(
            api_key=env.openai_api_key(),
            model=env.openai_model(),
            base_url=env.openai_base_url(),
            mode=mode,
            requests_per_minute=env.llm_requests_per_minute(),
        )
    if provider_id == "ollama":
        return OllamaProvider(
            endpoint=env.ollama_endpoint(),
            model=env.ollama_model(),
            mode=mode,
            requests_per_minute=env.llm_requests_per_minute(),
        )
    raise ValueError(f"Unknown LLM provider: {provider_id}")


def config_signature(provider: ReviewProvider) -> str:
    """Reviewer settings that invalidate the review snapshot when changed."""
    return f"{provider.id}:{provider.model}:{provider.mode}"
