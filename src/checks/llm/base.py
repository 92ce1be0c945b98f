"""Abstract base class and errors for review providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from extract.models import Element

from .prompts import LOW_FALSE_POSITIVE


@dataclass
class ReviewIssue:
    """One issue reported by a provider."""

    message: str
    severity: str = "info"


@dataclass
class ProviderReview:
    """A provider's verdict on one element, with the raw exchange for debugging."""

    issues: list[ReviewIssue] = field(default_factory=list)
    prompt: str = ""
    response: str = ""
    rewrite: str | None = None


class ReviewProvider(ABC):
    """Base class for all model-backed review providers.

    All provider implementations (OpenAI, Ollama) must implement this
    interface so the reviewer can drive them one element at a time.
    """

    id: str = "provider"
    mode: str = LOW_FALSE_POSITIVE

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identity used in the configuration signature."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check whether the provider has everything it needs to make requests."""
        pass

    @abstractmethod
    def review(self, element: Element) -> ProviderReview:
        """Review a single element.

        Args:
            element: Sentence to review

        Returns:
            Parsed review

        Raises:
            ProviderError: If this request failed (element is skipped)
            ProviderFatalError: If no further request can succeed (queue halts)
        """
        pass


class ReviewError(Exception):
    """Base exception for review errors."""

    pass


class ProviderError(ReviewError):
    """A single provider request failed."""

    pass


class ProviderFatalError(ReviewError):
    """Provider rejected the configuration; remaining reviews cannot succeed."""

    pass
