"""Client address resolution behind proxies."""

from __future__ import annotations

from fastapi import Request

# Checked in order; the first non-empty value wins
_FORWARDING_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
)


def get_client_ip(request: Request) -> str:
    """Return the caller's IP, or ``""`` when the request carries none.

    For ``X-Forwarded-For`` the left-most (originating) address is used.
    """
    for header in _FORWARDING_HEADERS:
        value = request.headers.get(header)
        if value:
            first = value.split(",")[0].strip()
            if first:
                return first
    return request.client.host if request.client else ""
