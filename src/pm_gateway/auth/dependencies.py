"""FastAPI dependency: get_current_user_id.

Authentication is handled upstream; the engine trusts the opaque user id
forwarded in the X-User-Id header.

Usage in any router:
    from src.pm_gateway.auth.dependencies import get_current_user_id

    @router.post("/trades")
    async def trade(user_id: str = Depends(get_current_user_id)):
        ...
"""

from typing import Annotated

from fastapi import Header

from src.pm_common.errors import MissingUserError


async def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Return the caller's user id; raises MissingUserError (401) when absent or blank."""
    if x_user_id is None or not x_user_id.strip():
        raise MissingUserError()
    return x_user_id.strip()
