"""
HMAC-SHA256 request signing for the Binance Futures REST API.

The signature is computed over the URL-encoded query string (parameters in
insertion order) with the API secret as key, hex-encoded, and appended as
the last parameter ``signature``.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

from .errors import ConfigError


def timestamp_ms() -> int:
    """Current time in milliseconds, as Binance expects it."""
    return int(time.time() * 1000)


def build_query(params: Mapping[str, Any]) -> str:
    """Join *params* into a query string, preserving their order."""
    return urlencode(list(params.items()))


class RequestSigner:
    """Keyed-hash signer bound to one API secret."""

    def __init__(self, secret: str):
        if not secret:
            raise ConfigError("API secret must not be empty.")
        self._key = secret.encode("utf-8")

    def __repr__(self) -> str:
        return "RequestSigner(secret='***')"

    def sign(self, query_string: str) -> str:
        """Return the lowercase hex HMAC-SHA256 digest of *query_string*."""
        return hmac.new(
            self._key,
            query_string.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def sign_params(
        self,
        params: Optional[Mapping[str, Any]] = None,
        timestamp: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Return a copy of *params* with ``timestamp`` and ``signature`` added.

        Parameters
        ----------
        params : mapping, optional
            Request parameters, without ``signature``.
        timestamp : int, optional
            Millisecond timestamp; defaults to the current time.
        """
        signed = {k: v for k, v in (params or {}).items() if k != "signature"}
        signed["timestamp"] = timestamp_ms() if timestamp is None else timestamp
        signed["signature"] = self.sign(build_query(signed))
        return signed
