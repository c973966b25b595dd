"""Response error extraction for load test observability.

Parses HomeChef API error responses into human-readable messages.
Handles three response shapes:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- HTTP errors (401/403): {"detail": "msg"}
- Domain errors (400/402/403/409/422/502): {"error": {"field": ["msg"]}, "code": "ErrorName"}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response.

    Returns a compact string suitable for Locust failure messages and log lines.
    Gracefully handles unparseable bodies and missing fields.
    """
    try:
        body = response.json()
    except ValueError:
        # Not JSON, return raw text, truncated
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:300]

    # Pydantic validation errors: {"detail": [{"loc": [...], "msg": "..."}]}
    if isinstance(body.get("detail"), list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    if "detail" in body:
        return str(body["detail"])

    # Domain errors: {"error": {"field": ["msg"]}, "code": "..."}
    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            detail = " | ".join(f"{k}: {'; '.join(v) if isinstance(v, list) else v}" for k, v in error.items())
        else:
            detail = str(error)
        return f"{body['code']}: {detail}" if body.get("code") else detail

    # Unknown shape, stringify and truncate
    return str(body)[:300]
