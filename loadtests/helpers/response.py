"""Response error extraction for load test observability.

Parses Checkout API error responses into human-readable messages.
Handles two response shapes:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- Checkout errors (400/422/500): {"detail": {"code": "...", "message": "..."}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response."""
    try:
        body = response.json()
    except Exception:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    detail = body.get("detail") if isinstance(body, dict) else None

    if isinstance(detail, list):
        parts = []
        for err in detail:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    if isinstance(detail, dict):
        if "code" in detail:
            reason = f" ({detail['reason']})" if detail.get("reason") else ""
            return f"{detail['code']}{reason}: {detail.get('message', '')}"
        return " | ".join(f"{k}: {v}" for k, v in detail.items())

    if detail is not None:
        return str(detail)

    return str(body)[:300]
