"""
Request ownership.

Session validation happens upstream of this service (gateway / auth proxy),
which forwards the authenticated user id in ``settings.owner_header``.
Every task and dependency query is scoped to that id.
"""

from fastapi import HTTPException, Request, status

from app.config import settings


def get_current_owner(request: Request) -> str:
    """FastAPI dependency returning the calling user's id, or 401."""
    owner_id = request.headers.get(settings.owner_header, "").strip()
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Authentication required", "code": "UNAUTHORIZED"},
        )
    return owner_id
