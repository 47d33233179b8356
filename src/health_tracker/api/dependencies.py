"""Request dependencies shared by the API routers."""

from typing import Protocol, TypeVar

from fastapi import Header, HTTPException, status

from health_tracker.domain.errors import NotFoundError


class _Owned(Protocol):
    @property
    def user_id(self) -> str: ...


OwnedT = TypeVar("OwnedT", bound=_Owned)


async def require_user(x_user_id: str | None = Header(default=None)) -> str:
    """Return the caller's user id set by the upstream auth layer."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return x_user_id.strip()


def ensure_owner(record: OwnedT, user_id: str, label: str) -> OwnedT:
    """Hide records that belong to other users behind a not-found error."""
    if record.user_id != user_id:
        raise NotFoundError(f"{label} not found")
    return record
