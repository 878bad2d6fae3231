from datetime import date, datetime
from zoneinfo import ZoneInfo

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings
from ..models.listing import Listing
from .logging_config import owner_id_var
from .security import verify_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_owner_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> str:
    """
    Return the owner id (JWT subject) of the caller, or 401.

    Must stay async: run in the threadpool, the owner_id_var set would land
    in a copied context. request.state carries the owner to the access log.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    owner_id = str(payload["sub"])
    owner_id_var.set(owner_id)
    request.state.owner_id = owner_id
    return owner_id


def ensure_owner(listing: Listing, owner_id: str) -> None:
    """Only the listing's owner may change it. Unowned listings are open to any authenticated caller."""
    if listing.owner_id is not None and listing.owner_id != owner_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not own this listing"
        )


def local_today() -> date:
    """Today's date in the calendar timezone."""
    return datetime.now(ZoneInfo(settings.calendar_timezone)).date()


def ensure_not_past(value: date, field: str) -> None:
    if value < local_today():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{field} must be today or later"
        )


def ensure_range_length(start: date, end: date) -> None:
    if (end - start).days + 1 > settings.max_calendar_days:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Date range cannot exceed {settings.max_calendar_days} days"
        )
