"""Request dependencies: the calling principal.

The identity provider in front of the service authenticates the caller and
forwards who they are in trusted headers.
"""

from fastapi import Header, HTTPException

from ordering.access import Principal

_TRUTHY = {"1", "true", "yes", "on"}


def current_principal(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_user_admin: str | None = Header(default=None),
    x_user_seller: str | None = Header(default=None),
) -> Principal:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return Principal(
        id=x_user_id,
        email=x_user_email,
        is_admin=(x_user_admin or "").strip().lower() in _TRUTHY,
        is_seller=(x_user_seller or "").strip().lower() in _TRUTHY,
    )
