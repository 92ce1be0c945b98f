"""Environment configuration interface for thesis-lint.

This module provides a clean interface for accessing environment variables,
centralizing all environment variable access in one place.
"""

import os

from dotenv import load_dotenv

from .constants import DEFAULT_CACHE_DIR

# Load environment variables from .env file if it exists
load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE_VALUES


class Environment:
    """Interface for accessing environment configuration."""

    @staticmethod
    def log_level() -> str:
        """Get the default logging level.

        Returns:
            Log level name, defaults to 'INFO'
        """
        return os.getenv("LOG_LEVEL", "INFO").upper()

    @staticmethod
    def cache_dir() -> str:
        """Get the snapshot folder name, relative to the workspace root.

        Returns:
            Folder name, defaults to '.thesis-lint'
        """
        return os.getenv("THESIS_LINT_CACHE_DIR", DEFAULT_CACHE_DIR)

    @staticmethod
    def min_sentences_per_section() -> int:
        """Get the minimum number of sentences a section should contain.

        Returns:
            Minimum sentence count, defaults to 3
        """
        return int(os.getenv("MIN_SENTENCES_PER_SECTION", "3"))

    @staticmethod
    def llm_enabled() -> bool:
        """Check whether the model-backed reviewer is enabled.

        Returns:
            True if LLM_ENABLED is set to a truthy value, defaults to False
        """
        return _flag("LLM_ENABLED")

    @staticmethod
    def llm_provider() -> str:
        """Get the reviewer provider (openai or ollama).

        Returns:
            Provider id, defaults to 'openai'
        """
        return os.getenv("LLM_PROVIDER", "openai").strip().lower()

    @staticmethod
    def openai_api_key() -> str:
        """Get the OpenAI API key.

        Returns:
            API key, defaults to empty string
        """
        return os.getenv("OPENAI_API_KEY", "").strip()

    @staticmethod
    def openai_model() -> str:
        """Get the OpenAI chat model.

        Returns:
            Model name, defaults to 'gpt-3.5-turbo'
        """
        return os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")

    @staticmethod
    def openai_base_url() -> str:
        """Get the OpenAI-compatible chat completions URL.

        Returns:
            URL, defaults to the public OpenAI endpoint
        """
        return os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1/chat/completions")

    @staticmethod
    def ollama_endpoint() -> str:
        """Get the Ollama server endpoint.

        Returns:
            Endpoint URL, defaults to 'http://localhost:11434'
        """
        return os.getenv("OLLAMA_ENDPOINT", "http://localhost:11434")

    @staticmethod
    def ollama_model() -> str:
        """Get the Ollama model.

        Returns:
            Model name, defaults to 'llama3'
        """
        return os.getenv("OLLAMA_MODEL", "llama3")

    @staticmethod
    def llm_review_mode() -> str:
        """Get the review mode (lowFalsePositive or highRecall).

        Returns:
            Review mode, defaults to 'lowFalsePositive'
        """
        return os.getenv("LLM_REVIEW_MODE", "lowFalsePositive")

    @staticmethod
    def llm_max_items() -> int:
        """Get the maximum number of sentences reviewed per run.

        Returns:
            Item cap, defaults to 0 (unlimited)
        """
        return int(os.getenv("LLM_MAX_ITEMS", "0"))

    @staticmethod
    def llm_requests_per_minute() -> int:
        """Get the reviewer rate limit.

        Returns:
            Requests per minute, defaults to 60
        """
        return int(os.getenv("LLM_REQUESTS_PER_MINUTE", "60"))

    @staticmethod
    def llm_debug_log() -> bool:
        """Check whether every review is appended to llm.debug.jsonl.

        Returns:
            True if LLM_DEBUG_LOG is set to a truthy value, defaults to False
        """
        return _flag("LLM_DEBUG_LOG")

    @staticmethod
    def watch_debounce_seconds() -> float:
        """Get the delay between the last save and an automatic run.

        Returns:
            Delay in seconds, defaults to 1.0
        """
        return float(os.getenv("WATCH_DEBOUNCE_SECONDS", "1.0"))


# Singleton instance for convenient access
env = Environment()
