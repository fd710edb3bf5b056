# recon/errors.py
from __future__ import annotations

from typing import Optional


class ReconError(Exception):
    """Base reconciliation error."""
    def __init__(self, msg: str = ""):
        super().__init__(msg)
        self.msg = msg

    def __str__(self):
        return self.msg or self.__class__.__name__


class SourceError(ReconError):
    """
    The trade source could not produce the requested range: network failure,
    non-success HTTP status, or a payload that cannot be paginated.

    ``retriable`` tells a polling caller whether trying again later is
    sensible; ``rate_limited`` and ``timeout`` narrow the reason down.
    """

    def __init__(self, msg: str = "", *,
                 status: Optional[int] = None,
                 retriable: bool = False,
                 rate_limited: bool = False,
                 timeout: bool = False):
        super().__init__(msg)
        self.status = status
        self.retriable = retriable
        self.rate_limited = rate_limited
        self.timeout = timeout

    @classmethod
    def from_http(cls, err, context: str = "") -> "SourceError":
        """Classify an infra HttpError (anything with ``status`` and a message)."""
        status = getattr(err, "status", None)
        text = str(err)
        lowered = text.lower()
        rate_limited = status == 429 or "rate limit" in lowered
        timeout = status == 504 or "timeout" in lowered
        retriable = rate_limited or timeout or (status is not None and status >= 500)
        msg = f"{context}: {text}" if context else text
        return cls(msg, status=status, retriable=retriable,
                   rate_limited=rate_limited, timeout=timeout)

    def __str__(self):
        base = super().__str__()
        flags = [name for name in ("rate_limited", "timeout") if getattr(self, name)]
        if flags:
            return f"{base} [{', '.join(flags)}]"
        return base
