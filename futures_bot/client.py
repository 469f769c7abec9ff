"""
Low-level Binance USDT-M Futures REST client.

Handles authentication (HMAC-SHA256 signing), request dispatch with a
per-call timeout, bounded retry of transient failures and raw response
parsing.  Public methods return ``Decimal`` values or raise one of the
``futures_bot.errors`` exceptions.
"""

from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Union

import requests

from .config import ClientSettings
from .errors import (
    PermanentError,
    RequestTimeoutError,
    TransientError,
)
from .signing import RequestSigner
from .validators import to_decimal, validate_asset, validate_symbol

logger = logging.getLogger("futures_bot")

# HTTP statuses Binance uses for rate limiting (418 = IP auto-banned).
_RATE_LIMIT_STATUSES = (418, 429)
_RATE_LIMIT_DELAY_FACTOR = 3

# ── Custom exceptions ──────────────────────────────────────────────────────


class BinanceAPIError(Exception):
    """Raised when the Binance API returns a non-2xx response."""

    def __init__(self, status_code: int, code: int, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(f"[HTTP {status_code}] Binance error {code}: {message}")

    @property
    def rate_limited(self) -> bool:
        return self.status_code in _RATE_LIMIT_STATUSES


class BinanceTransientError(BinanceAPIError, TransientError):
    """Rate limit or exchange-side (5xx) failure; safe to retry."""


class BinancePermanentError(BinanceAPIError, PermanentError):
    """Any other rejected request (bad key, bad symbol, bad parameter)."""


def api_error(status_code: int, code: int, message: str) -> BinanceAPIError:
    """Build the ``BinanceAPIError`` subclass matching *status_code*."""
    if status_code in _RATE_LIMIT_STATUSES or status_code >= 500:
        return BinanceTransientError(status_code, code, message)
    return BinancePermanentError(status_code, code, message)


# ── Client ─────────────────────────────────────────────────────────────────


class BinanceFuturesClient:
    """Thin wrapper around the Binance USDT-M Futures API.

    Provides the market-data (mark price, long/short ratio) and account
    (available balance) capabilities the pricing engine consumes.
    """

    def __init__(
        self,
        settings: ClientSettings,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.base_url = settings.base_url.rstrip("/")
        self._signer = RequestSigner(settings.api_secret)
        self._sleep = sleep
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"X-MBX-APIKEY": settings.api_key})

    # ── context-manager support ────────────────────────────────────────

    def __enter__(self) -> "BinanceFuturesClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    # ── internal helpers ───────────────────────────────────────────────

    def _send(
        self,
        method: str,
        path: str,
        params: Dict[str, Any],
        signed: bool,
    ) -> Union[Dict[str, Any], List[Any]]:
        """Send one HTTP request and parse the JSON body."""
        url = f"{self.base_url}{path}"
        if signed:
            params = self._signer.sign_params(params)

        logger.debug(
            "API request  -> %s %s params=%s",
            method,
            url,
            {k: v for k, v in params.items() if k != "signature"},
        )

        try:
            response = self._session.request(
                method, url, params=params, timeout=self.settings.timeout
            )
        except requests.Timeout as exc:
            raise RequestTimeoutError(
                f"{method} {path} timed out after {self.settings.timeout}s"
            ) from exc
        except requests.RequestException as exc:
            raise TransientError(f"{method} {path} failed: {exc}") from exc

        logger.debug(
            "API response <- %s (%.1f KB)",
            response.status_code,
            len(response.content) / 1024,
        )

        if not response.ok:
            try:
                body = response.json()
                code = body.get("code", -1)
                msg = body.get("msg", response.text)
            except (ValueError, AttributeError):
                code = -1
                msg = response.text
            raise api_error(response.status_code, code, msg)

        try:
            return response.json()
        except ValueError as exc:
            raise PermanentError(f"{method} {path} returned a non-JSON body") from exc

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        signed: bool = False,
    ) -> Union[Dict[str, Any], List[Any]]:
        """
        Send an HTTP request, retrying transient failures.

        Parameters
        ----------
        method : str
            HTTP verb (``GET``, ``POST``, ``DELETE``, ...).
        path : str
            API path, e.g. ``/fapi/v1/premiumIndex``.
        params : dict, optional
            Query parameters.
        signed : bool
            If ``True``, add ``timestamp`` and HMAC-SHA256 ``signature``.
            Each attempt is signed afresh.

        Returns
        -------
        dict or list
            Parsed JSON response body.

        Raises
        ------
        TransientError
            When every attempt failed with a retryable error.
        PermanentError
            On the first non-retryable failure.
        """
        params = dict(params or {})
        attempts = self.settings.max_retries + 1

        for attempt in range(attempts):
            try:
                return self._send(method, path, params, signed)
            except TransientError as exc:
                if attempt == attempts - 1:
                    logger.error(
                        "%s %s failed after %d attempt(s): %s", method, path, attempts, exc
                    )
                    raise

                delay = self.settings.retry_base_delay * (2 ** attempt)
                if isinstance(exc, BinanceAPIError) and exc.rate_limited:
                    delay *= _RATE_LIMIT_DELAY_FACTOR
                logger.warning(
                    "Retrying %s %s in %.1fs (attempt %d/%d): %s",
                    method, path, delay, attempt + 1, attempts, exc,
                )
                self._sleep(delay)
            except PermanentError as exc:
                logger.error("%s %s failed: %s", method, path, exc)
                raise

        raise AssertionError("unreachable")  # pragma: no cover

    # ── public API methods ─────────────────────────────────────────────

    def get_mark_price(self, symbol: str) -> Decimal:
        """Current mark price (``GET /fapi/v1/premiumIndex``)."""
        symbol = validate_symbol(symbol)
        data = self._request("GET", "/fapi/v1/premiumIndex", params={"symbol": symbol})
        try:
            return to_decimal(data["markPrice"], "mark price")
        except (KeyError, TypeError) as exc:
            raise PermanentError(f"No mark price for {symbol} in response") from exc

    def get_long_short_ratio(self, symbol: str, period: str = "5m") -> Decimal:
        """
        Latest top-trader long/short position ratio
        (``GET /futures/data/topLongShortPositionRatio``).
        """
        symbol = validate_symbol(symbol)
        data = self._request(
            "GET",
            "/futures/data/topLongShortPositionRatio",
            params={"symbol": symbol, "period": period, "limit": 1},
        )
        if not data:
            raise PermanentError(f"No long/short ratio data for {symbol} ({period})")
        try:
            return to_decimal(data[0]["longShortRatio"], "long/short ratio")
        except (KeyError, TypeError, IndexError) as exc:
            raise PermanentError(f"Malformed long/short ratio for {symbol}") from exc

    def get_available_balance(self, asset: str) -> Decimal:
        """Available balance of *asset* (``GET /fapi/v2/balance``)."""
        asset = validate_asset(asset)
        rows = self._request("GET", "/fapi/v2/balance", signed=True)
        if not isinstance(rows, list):
            raise PermanentError(f"Unexpected balance response: {type(rows).__name__}")
        for row in rows:
            if isinstance(row, dict) and row.get("asset") == asset:
                value = row.get("availableBalance", row.get("withdrawAvailable"))
                if value is None:
                    break
                return to_decimal(value, f"{asset} balance")
        raise PermanentError(f"Asset {asset} not found in futures balance")
