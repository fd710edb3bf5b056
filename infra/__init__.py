# infra/__init__.py
from __future__ import annotations

import logging
from typing import Protocol, Mapping, Any, Optional

from infra.http_client import HttpClient, HttpError

__all__ = ["HttpClient", "HttpError", "HttpPort", "HttpContainer"]


# ========== 1) Port: the core depends on this, not on HttpClient ==========
class HttpPort(Protocol):
    async def post_info(self, json_body: Mapping[str, Any], path: str = "/info") -> Any: ...


# ========== 2) Container: create / close ==========
class HttpContainer:
    """
    Owns the HttpClient lifetime for an application entrypoint.
    The entrypoint holds the container and injects ``container.http``
    into the services.
    """
    def __init__(self, http: HttpClient) -> None:
        self.http = http

    @classmethod
    async def start(cls,
                    cfg: Mapping[str, Any],
                    logger: Optional[logging.Logger] = None,
                    ) -> "HttpContainer":
        http = HttpClient(cfg, logger=logger)
        await http.__aenter__()
        return cls(http)

    async def stop(self) -> None:
        await self.http.close()
