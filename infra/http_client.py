# infra/http_client.py
from __future__ import annotations

import aiohttp
import asyncio
import json
import random
from typing import Any, Mapping, Optional
import logging
from utils.logger import logger

JSON_SEPARATORS = (",", ":")

DEFAULT_REST_BASE = "https://api.hyperliquid.xyz"


class HttpError(Exception):
    def __init__(self, status: int, message: str, payload: Optional[dict] = None):
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.message = message
        self.payload = payload or {}


def _json_dumps_compact(obj: Any) -> str:
    return json.dumps(obj, separators=JSON_SEPARATORS, ensure_ascii=False)


def _short(s: str, n: int = 256) -> str:
    return s if len(s) <= n else s[:n] + "..."


class HttpClient:
    """
    JSON-over-HTTP client for the Hyperliquid info API.

    The venue exposes every read as ``POST /info`` with a ``type`` field in
    the body, so the client is built around POSTing a compact JSON body and
    decoding a JSON reply (object or array).
    """
    def __init__(self,
                 cfg: Mapping[str, Any],
                 logger: Optional[logging.Logger] = None,
                 *,
                 timeout_ms: Optional[int] = None,
                 session: Optional[aiohttp.ClientSession] = None,
                 ) -> None:
        self.cfg = cfg
        self.log = logger or logging.getLogger("HttpClient")
        self.session = session
        self._owned_session = session is None

        hl_cfg = cfg.get("hyperliquid", {}) or {}
        self.base_url = str(hl_cfg.get("rest_base") or DEFAULT_REST_BASE).rstrip("/")

        # timeouts & retries
        timeouts_cfg = cfg.get("timeouts", {}) or {}
        retries_cfg = cfg.get("retries", {}) or {}
        self.timeout_ms = int(timeout_ms or timeouts_cfg.get("rest_ms", 30000))
        self.max_attempts = max(1, int(retries_cfg.get("rest_max_attempts", 1)))
        self.backoff_ms = int(retries_cfg.get("backoff_ms", 200))

        self.log.debug(
            f"HttpClient init base_url={self.base_url} timeout_ms={self.timeout_ms} "
            f"max_attempts={self.max_attempts}"
        )

    # ---- async context manager ----------------------------------------------------
    async def __aenter__(self) -> "HttpClient":
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._owned_session and (self.session is None or self.session.closed):
            timeout = aiohttp.ClientTimeout(total=self.timeout_ms / 1000.0)
            self.session = aiohttp.ClientSession(timeout=timeout, raise_for_status=False, trust_env=True)
        return self.session

    async def close(self) -> None:
        if self._owned_session and self.session is not None and not self.session.closed:
            await self.session.close()

    async def request(
            self,
            method: str,
            path: str,
            *,
            json_body: Optional[Mapping[str, Any]] = None,
            headers: Optional[Mapping[str, str]] = None,
            timeout_ms: Optional[int] = None,
            retry: bool = True,
        ) -> Any:
        """
        Send one request and return the decoded JSON body.

        - method: "GET" | "POST"
        - path: absolute path on the API host, e.g. "/info"
        - json_body: request body, sent compact
        - timeout_ms: overrides the client-wide timeout
        - retry: retry 429/5xx/network errors with exponential backoff,
          bounded by ``retries.rest_max_attempts``

        Raises HttpError on status >= 400, undecodable JSON (original status),
        network failure (599) or timeout (504).
        """
        assert path.startswith("/"), "path must start with /"
        method = method.upper()
        url = self.base_url + path
        body_str = _json_dumps_compact(json_body) if json_body is not None else ""
        req_headers = {
            "Content-Type": "application/json", "Accept": "application/json"
        }
        if headers:
            req_headers.update(headers)

        session = self._ensure_session()
        timeout_ctx = aiohttp.ClientTimeout(total=timeout_ms / 1000.0) if timeout_ms else None

        attempt = 0
        while True:
            attempt += 1
            try:
                async with session.request(
                    method,
                    url,
                    data=body_str if body_str else None,
                    headers=req_headers,
                    timeout=timeout_ctx,
                ) as resp:
                    text = await resp.text()
                    status = resp.status
                    if status >= 400:
                        if retry and (status >= 500 or status == 429) and attempt < self.max_attempts:
                            logger.warning(f"HTTP {status} from {url}, retrying (attempt {attempt})")
                            await self._sleep_backoff(attempt)
                            continue
                        raise HttpError(status, _short(text))

                    try:
                        return json.loads(text) if text else None
                    except json.JSONDecodeError:
                        raise HttpError(status, f"invalid json: {_short(text)}")
            except asyncio.TimeoutError as e:
                if retry and attempt < self.max_attempts:
                    logger.warning(f"Timeout when requesting {url}, retrying...")
                    await self._sleep_backoff(attempt)
                    continue
                raise HttpError(504, f"Request timeout after {self.timeout_ms} ms") from e
            except aiohttp.ClientError as e:
                if retry and attempt < self.max_attempts:
                    logger.warning(f"Network error: {e} when requesting {url}, retrying...")
                    await self._sleep_backoff(attempt)
                    continue
                raise HttpError(599, f"Network error: {e}") from e

    async def _sleep_backoff(self, attempt: int) -> None:
        base = self.backoff_ms * (2 ** (attempt - 1))
        jitter = random.randint(0, self.backoff_ms)
        await asyncio.sleep((base + jitter) / 1000.0)

    # ---- convenience --------------------------------------------------------------
    async def post_info(self, json_body: Mapping[str, Any], path: str = "/info") -> Any:
        self.log.debug(f"POST {path} type={json_body.get('type')}")
        return await self.request("POST", path, json_body=json_body)
