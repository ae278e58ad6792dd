"""
llm.py

Text-completion client used by the correction, merge and heading
detection stages.

ChatModelCompletion drives a LangChain chat model (ChatGroq or
ChatGoogleGenerativeAI, chosen by config.LLM_PROVIDER), pulls keys from
a KeyPool and retries a bounded number of times. get_completion()
returns a shared client, or None when no API key is configured, in
which case every stage that depends on it passes its input through.
"""

import logging
import time
from typing import Callable, Optional, Protocol

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from Extraction import config
from Extraction.credentials import KeyOutcome, KeyPool
from Extraction.prompts import INVALID_KEY_MESSAGE, NO_API_KEY_MESSAGE, RATE_LIMITED_MESSAGE

logger = logging.getLogger(__name__)

ModelFactory = Callable[[str, int, float], BaseChatModel]


class CompletionError(Exception):
    """Raised when a completion cannot be obtained within the retry budget."""

    def __init__(self, message: str, outcome: KeyOutcome = KeyOutcome.ERROR):
        super().__init__(message)
        self.outcome = outcome


class TextCompletion(Protocol):
    """Anything that can turn a system + user prompt into text."""

    def complete(
        self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float
    ) -> Optional[str]:
        ...


def build_chat_model(
    api_key: str,
    max_tokens: int,
    temperature: float,
    provider: str = config.LLM_PROVIDER,
    model: str = config.LLM_MODEL,
) -> BaseChatModel:
    """Instantiate the configured LangChain chat model for one call."""
    if provider == "groq":
        from langchain_groq import ChatGroq

        return ChatGroq(
            model=model,
            api_key=api_key,
            temperature=temperature,
            max_tokens=max_tokens,
            max_retries=0,
        )

    if provider == "gemini":
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            model=model,
            google_api_key=api_key,
            temperature=temperature,
            max_output_tokens=max_tokens,
            max_retries=0,
        )

    raise ValueError(f"Unknown LLM provider '{provider}'. Expected 'groq' or 'gemini'")


def classify_failure(error: Exception) -> KeyOutcome:
    """Map a provider exception to a key outcome."""
    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    message = str(error)
    lowered = message.lower()

    if (
        status == 429
        or "rate limit" in lowered
        or "rate_limit" in lowered
        or "too many requests" in lowered
    ):
        return KeyOutcome.RATE_LIMITED
    if status == 401 or "api key" in lowered:
        return KeyOutcome.INVALID
    return KeyOutcome.ERROR


def _response_text(response) -> str:
    content = response.content if hasattr(response, "content") else str(response)
    if isinstance(content, list):
        # Some providers return content as a list of parts
        content = "".join(
            part.get("text", "") if isinstance(part, dict) else str(part) for part in content
        )
    return (content or "").strip()


class ChatModelCompletion:
    """TextCompletion backed by a LangChain chat model and a KeyPool."""

    def __init__(
        self,
        key_pool: KeyPool,
        model_factory: Optional[ModelFactory] = None,
        max_attempts: int = config.LLM_MAX_ATTEMPTS,
        backoff_seconds: float = config.LLM_RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.key_pool = key_pool
        self._model_factory = model_factory or build_chat_model
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def complete(
        self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float
    ) -> Optional[str]:
        """
        Run one completion.

        Returns the stripped model output, or None when the model
        answered with nothing.

        Raises:
            CompletionError: When no key is usable or every attempt failed.
        """
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        last_error: Optional[Exception] = None
        last_outcome = KeyOutcome.ERROR
        last_key: Optional[str] = None

        for attempt in range(1, self.max_attempts + 1):
            key = self.key_pool.acquire()
            if key is None and last_outcome is KeyOutcome.RATE_LIMITED:
                # Every key is cooling down; the backoff has already been waited
                key = last_key
            if key is None:
                if len(self.key_pool) == 0:
                    raise CompletionError(NO_API_KEY_MESSAGE, KeyOutcome.INVALID)
                raise CompletionError(RATE_LIMITED_MESSAGE, KeyOutcome.RATE_LIMITED) from last_error

            last_key = key
            try:
                llm = self._model_factory(key, max_tokens, temperature)
                response = llm.invoke(messages)
            except Exception as e:
                last_error = e
                last_outcome = classify_failure(e)
                self.key_pool.report_outcome(key, last_outcome)
                logger.warning(
                    "Completion attempt %d/%d failed (%s): %s",
                    attempt, self.max_attempts, last_outcome.value, e,
                )
                if last_outcome is KeyOutcome.RATE_LIMITED and attempt < self.max_attempts:
                    logger.info("Rate limited, waiting %.0fs before retrying", self.backoff_seconds)
                    self._sleep(self.backoff_seconds)
                continue

            self.key_pool.report_outcome(key, KeyOutcome.SUCCESS)
            text = _response_text(response)
            return text or None

        if last_outcome is KeyOutcome.RATE_LIMITED:
            message = RATE_LIMITED_MESSAGE
        elif last_outcome is KeyOutcome.INVALID:
            message = INVALID_KEY_MESSAGE
        else:
            message = str(last_error)
        raise CompletionError(message, last_outcome) from last_error


# Module-level singleton client
_completion: Optional[ChatModelCompletion] = None
_completion_checked = False


def get_completion() -> Optional[ChatModelCompletion]:
    """
    Get or create the shared completion client.

    Returns None (and logs once) when the provider has no API key
    configured.
    """
    global _completion, _completion_checked
    if _completion_checked:
        return _completion

    _completion_checked = True
    pool = KeyPool.from_env(config.LLM_PROVIDER)

    if len(pool) == 0:
        env_vars = " / ".join(config.API_KEY_ENV_VARS.get(config.LLM_PROVIDER, ()))
        logger.error("=" * 64)
        logger.error("No API key configured for LLM provider '%s'", config.LLM_PROVIDER)
        logger.error("Text correction, page merging and heading detection are disabled.")
        logger.error("Set %s in the environment or a .env file to enable them.", env_vars)
        logger.error("=" * 64)
        return None

    logger.info(
        "LLM client ready: provider=%s model=%s keys=[%s]",
        config.LLM_PROVIDER, config.LLM_MODEL, ", ".join(pool.masked_keys()),
    )
    _completion = ChatModelCompletion(pool)
    return _completion


def reset_completion() -> None:
    """Reset the shared client (useful for testing)."""
    global _completion, _completion_checked
    _completion = None
    _completion_checked = False
