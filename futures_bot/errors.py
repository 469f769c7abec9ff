"""
Error taxonomy for the futures bot helpers.

Errors fall into three kinds:

Transient       retryable (network failure, timeout, rate limit, 5xx)
Permanent       retrying will not help (bad config, auth failure, bad symbol)
InvalidInput    bad arguments passed to a pricing function

Only permanent and invalid-input errors should stop the bot.
"""

from __future__ import annotations


class FuturesBotError(Exception):
    """Base class for every error raised by ``futures_bot``."""


class TransientError(FuturesBotError):
    """A failure that may succeed if the call is retried later."""


class RequestTimeoutError(TransientError):
    """An HTTP call did not complete within the configured timeout."""


class PermanentError(FuturesBotError):
    """A failure that will repeat on every retry."""


class ConfigError(PermanentError):
    """Missing or malformed configuration."""


class InvalidInputError(FuturesBotError, ValueError):
    """Invalid argument passed to a pricing or validation function."""


def is_fatal(exc: BaseException) -> bool:
    """Return ``True`` if *exc* should stop the process."""
    return not isinstance(exc, TransientError)
