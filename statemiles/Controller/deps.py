#statemiles/Controller/deps.py

from typing import Generator, Optional

from fastapi import Header, HTTPException

from statemiles.Core.exceptions import StateMilesError, TripNotFoundError, TripStateError, TripValidationError
from statemiles.DB.session import SessionLocal


def get_DB() -> Generator:
    DB = SessionLocal()
    try:
        yield DB
    finally:
        DB.close()


def get_current_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-ID")) -> str:
    """
    Identity of the caller, set by the authenticating gateway.

    Raises:
        401: Header missing or blank
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-ID header")
    return x_user_id.strip()


def raise_http(error: StateMilesError) -> None:
    """
    Translate a domain error into the matching HTTPException.
    """
    if isinstance(error, TripNotFoundError):
        raise HTTPException(status_code=404, detail=str(error)) from error
    if isinstance(error, TripStateError):
        raise HTTPException(status_code=409, detail=str(error)) from error
    if isinstance(error, TripValidationError):
        raise HTTPException(status_code=422, detail=str(error)) from error
    raise HTTPException(status_code=500, detail=str(error)) from error
