"""Principal resolution.

Authentication happens upstream; the gateway forwards the verified caller
as ``X-User-Id`` and ``X-User-Role`` headers.
"""

from fastapi import Header, HTTPException

from vetbook.models.schemas import Principal

ROLES = ("user", "doctor")


def get_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Principal:
    """FastAPI dependency returning the authenticated caller."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required.")
    if x_user_role not in ROLES:
        raise HTTPException(status_code=401, detail="Invalid token.")
    return Principal(id=x_user_id, role=x_user_role)
