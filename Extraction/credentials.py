"""
credentials.py

Pool of API keys for the LLM provider.

Keys are handed out round-robin. Callers report how each call went:
rate-limited keys are parked for KEY_COOLDOWN_SECONDS, rejected keys are
disabled for the life of the pool, and a key that keeps failing with
transient errors is parked like a rate-limited one.
"""

import logging
import os
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from Extraction import config
from Extraction.schemas import KeyPoolStatus

logger = logging.getLogger(__name__)


class KeyOutcome(str, Enum):
    """Result of one call made with a pooled key."""

    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    INVALID = "invalid"
    ERROR = "error"


@dataclass
class _KeyState:
    key: str
    cooldown_until: float = 0.0
    consecutive_errors: int = 0
    disabled: bool = False


def mask_key(key: str) -> str:
    """Show only the first 8 and last 4 characters of a key."""
    if len(key) <= 12:
        return "*" * len(key)
    return f"{key[:8]}...{key[-4:]}"


class KeyPool:
    """Thread-safe rotation over a set of API keys."""

    def __init__(
        self,
        keys: Sequence[str],
        cooldown_seconds: float = config.KEY_COOLDOWN_SECONDS,
        max_consecutive_errors: int = config.KEY_MAX_CONSECUTIVE_ERRORS,
        clock: Callable[[], float] = time.monotonic,
    ):
        unique: List[str] = []
        for key in keys:
            key = key.strip()
            if key and key not in unique:
                unique.append(key)

        self._states = [_KeyState(key) for key in unique]
        self._cooldown = cooldown_seconds
        self._max_errors = max_consecutive_errors
        self._clock = clock
        self._lock = threading.Lock()
        self._next = 0

    @classmethod
    def from_env(cls, provider: str = config.LLM_PROVIDER, **kwargs) -> "KeyPool":
        """
        Build a pool from the provider's environment variables.

        The comma-separated pool variable (e.g. GROQ_API_KEYS) is read
        first, then the single-key variable (e.g. GROQ_API_KEY).
        """
        keys: List[str] = []
        for var in config.API_KEY_ENV_VARS.get(provider, ()):
            value = os.getenv(var, "")
            keys.extend(part for part in value.split(",") if part.strip())
        return cls(keys, **kwargs)

    def __len__(self) -> int:
        return len(self._states)

    def masked_keys(self) -> List[str]:
        """Pooled keys in display-safe form."""
        return [mask_key(state.key) for state in self._states]

    def acquire(self) -> Optional[str]:
        """Return the next usable key, or None when every key is cooling down or disabled."""
        with self._lock:
            now = self._clock()
            count = len(self._states)

            for offset in range(count):
                index = (self._next + offset) % count
                state = self._states[index]
                if state.disabled or state.cooldown_until > now:
                    continue
                self._next = (index + 1) % count
                return state.key

        return None

    def report_outcome(self, key: str, outcome: KeyOutcome) -> None:
        """Record how a call made with `key` went."""
        with self._lock:
            state = self._find(key)
            if state is None:
                logger.warning("Outcome reported for unknown key %s", mask_key(key))
                return

            if outcome is KeyOutcome.SUCCESS:
                state.consecutive_errors = 0
                state.cooldown_until = 0.0

            elif outcome is KeyOutcome.RATE_LIMITED:
                state.cooldown_until = self._clock() + self._cooldown
                logger.warning(
                    "Key %s rate limited, cooling down for %.0fs", mask_key(key), self._cooldown
                )

            elif outcome is KeyOutcome.INVALID:
                state.disabled = True
                logger.error("Key %s rejected by provider, disabling it", mask_key(key))

            else:
                state.consecutive_errors += 1
                if state.consecutive_errors >= self._max_errors:
                    state.cooldown_until = self._clock() + self._cooldown
                    state.consecutive_errors = 0
                    logger.warning(
                        "Key %s failed %d times in a row, cooling down",
                        mask_key(key),
                        self._max_errors,
                    )

    def status(self) -> KeyPoolStatus:
        """Counts of total, currently usable and disabled/cooling keys."""
        with self._lock:
            now = self._clock()
            available = sum(
                1 for s in self._states if not s.disabled and s.cooldown_until <= now
            )
            total = len(self._states)
            return KeyPoolStatus(total=total, available=available, failed=total - available)

    def _find(self, key: str) -> Optional[_KeyState]:
        for state in self._states:
            if state.key == key:
                return state
        return None
