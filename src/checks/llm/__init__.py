"""Model-backed sentence review."""

from .base import (
    ProviderError,
    ProviderFatalError,
    ProviderReview,
    ReviewError,
    ReviewIssue,
    ReviewProvider,
)
from .providers import (
    OllamaProvider,
    OpenAIProvider,
    config_signature,
    create_provider,
    parse_review_response,
)
from .reviewer import CancellationToken, LLMReviewer, ReviewOutcome

__all__ = [
    "CancellationToken",
    "LLMReviewer",
    "OllamaProvider",
    "OpenAIProvider",
    "ProviderError",
    "ProviderFatalError",
    "ProviderReview",
    "ReviewError",
    "ReviewIssue",
    "ReviewOutcome",
    "ReviewProvider",
    "config_signature",
    "create_provider",
    "parse_review_response",
]
